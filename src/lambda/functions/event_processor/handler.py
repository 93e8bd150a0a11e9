"""SQS consumer for EventBridge events routed by the event pipeline.

Each SQS record carries one EventBridge event as its JSON body. Records that
cannot be processed are reported back through ``batchItemFailures`` so only
those messages return to the queue (and, after ``max_receive_count`` attempts,
to the dead-letter queue).
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List

LOGGER = logging.getLogger()
LOGGER.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

_REQUIRED_FIELDS = ("source", "detail-type", "detail")


class RecordError(ValueError):
    """A record whose body is not a usable EventBridge event."""


def parse_record(record: Dict[str, Any]) -> Dict[str, Any]:
    body = record.get("body")
    if not isinstance(body, str) or not body.strip():
        raise RecordError("empty message body")
    try:
        event = json.loads(body)
    except json.JSONDecodeError as exc:
        raise RecordError(f"body is not JSON: {exc}") from exc
    if not isinstance(event, dict):
        raise RecordError("body is not a JSON object")
    missing = [field for field in _REQUIRED_FIELDS if field not in event]
    if missing:
        raise RecordError(f"missing fields: {', '.join(missing)}")
    return event


def process_event(event: Dict[str, Any]) -> None:
    LOGGER.info(
        "Processing event %s from %s (%s)",
        event.get("id", "<no-id>"),
        event["source"],
        event["detail-type"],
    )
    LOGGER.debug("Event detail: %s", json.dumps(event["detail"]))


def main(event: Dict[str, Any], _context: Any) -> Dict[str, List[Dict[str, str]]]:
    records = event.get("Records") or []
    failures: List[Dict[str, str]] = []

    for record in records:
        message_id = record.get("messageId", "")
        try:
            process_event(parse_record(record))
        except RecordError as exc:
            LOGGER.warning("Record %s failed: %s", message_id, exc)
            failures.append({"itemIdentifier": message_id})

    LOGGER.info("Processed %d record(s), %d failure(s)", len(records), len(failures))
    return {"batchItemFailures": failures}
