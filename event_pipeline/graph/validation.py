"""Pre-flight validation of pipeline configurations.

Single-field rules are declared on :class:`PipelineSettings`. The rules below
span several fields and always run over the whole configuration after the
single-field pass, so one call reports every problem at once.
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from event_pipeline.config.defaults import DEFAULT_PIPELINE_CONFIG
from event_pipeline.graph.errors import ConfigValidationError, FieldError
from event_pipeline.graph.models import PipelineSettings
from event_pipeline.utils.logger import get_logger

logger = get_logger(__name__)

CrossFieldRule = Callable[[Mapping[str, Any]], Optional[FieldError]]

_ROOT_FIELD = "<config>"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def lambda_code_required(config: Mapping[str, Any]) -> Optional[FieldError]:
    if config.get("create_lambda") is True and _missing(config.get("lambda_code")):
        return FieldError("lambda_code", "is required when create_lambda is true")
    return None


def alarm_email_required(config: Mapping[str, Any]) -> Optional[FieldError]:
    if config.get("enable_alarms") is True and _missing(config.get("alarm_email")):
        return FieldError("alarm_email", "is required when enable_alarms is true")
    return None


def lambda_timeout_below_visibility(config: Mapping[str, Any]) -> Optional[FieldError]:
    """Checked even when no Lambda is created; both fields are settable on their own."""
    timeout = config.get("lambda_timeout")
    visibility = config.get("sqs_visibility_timeout_seconds")
    if not (_is_int(timeout) and _is_int(visibility)):
        return None
    if timeout >= visibility:
        return FieldError(
            "lambda_timeout",
            f"must be less than sqs_visibility_timeout_seconds ({visibility}), got {timeout}",
        )
    return None


def batching_window_for_large_batches(config: Mapping[str, Any]) -> Optional[FieldError]:
    """SQS event sources only accept batches above 10 with a batching window."""
    if config.get("create_lambda") is not True:
        return None
    batch_size = config.get("batch_size")
    window = config.get("maximum_batching_window_seconds")
    if _is_int(batch_size) and _is_int(window) and batch_size > 10 and window < 1:
        return FieldError(
            "maximum_batching_window_seconds",
            f"must be at least 1 when batch_size is above 10, got {window}",
        )
    return None


CROSS_FIELD_RULES: Tuple[CrossFieldRule, ...] = (
    lambda_code_required,
    alarm_email_required,
    lambda_timeout_below_visibility,
    batching_window_for_large_batches,
)


def _field_errors(exc: ValidationError) -> List[FieldError]:
    errors: List[FieldError] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or _ROOT_FIELD
        if err.get("type") == "extra_forbidden":
            message = "is not a recognised configuration key"
        else:
            message = str(err.get("msg", "is invalid"))
            if message.startswith("Value error, "):
                message = message[len("Value error, ") :]
        errors.append(FieldError(loc, message))
    return errors


def _dedupe(errors: List[FieldError]) -> List[FieldError]:
    seen: set[FieldError] = set()
    result: List[FieldError] = []
    for err in errors:
        if err in seen:
            continue
        seen.add(err)
        result.append(err)
    return result


def _evaluate(config: Mapping[str, Any]) -> Tuple[Optional[PipelineSettings], List[FieldError]]:
    if not isinstance(config, Mapping):
        return None, [FieldError(_ROOT_FIELD, "must be a mapping")]

    merged = {**DEFAULT_PIPELINE_CONFIG, **config}
    settings: Optional[PipelineSettings] = None
    errors: List[FieldError] = []
    try:
        settings = PipelineSettings.model_validate(merged)
    except ValidationError as exc:
        errors.extend(_field_errors(exc))

    # Cross-field rules see the validated values when the single-field pass
    # succeeded; otherwise they only judge raw values that are already integers.
    subject = settings.model_dump() if settings is not None else merged
    for rule in CROSS_FIELD_RULES:
        error = rule(subject)
        if error is not None:
            errors.append(error)

    return settings, _dedupe(errors)


def collect_errors(config: Mapping[str, Any]) -> List[FieldError]:
    """Return every violation in ``config``; an empty list means it is valid."""
    _, errors = _evaluate(config)
    return errors


def validate(config: Mapping[str, Any]) -> PipelineSettings:
    """Validate ``config`` and return the immutable settings.

    Raises
    ------
    ConfigValidationError
        With every field error found; nothing is built when this is raised.
    """
    settings, errors = _evaluate(config)
    if errors or settings is None:
        logger.warning(
            "Pipeline configuration rejected",
            extra={"error_count": len(errors), "fields": [err.field for err in errors]},
        )
        raise ConfigValidationError(errors)
    return settings
