#!/usr/bin/env python3
"""Validate an event pipeline configuration and preview what it would build.

Steps
-----
1. Load the configuration from a JSON document or an environment preset.
2. Run pre-flight validation; every field error is printed and the exit code is 1.
3. Resolve account/region (flags first, then STS / the boto3 session).
4. Assemble the resource graph and print either the projected outputs or the
   full graph as JSON.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from event_pipeline.config.environments import get_environment_config
from event_pipeline.config.loader import load_config_file, with_code_hash
from event_pipeline.graph import AccountContext, ConfigValidationError, assemble, project, validate

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_USAGE = 2


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate an event pipeline configuration")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--config", "-c", help="Path to a JSON pipeline configuration")
    source.add_argument("--environment", "-e", help="Use a built-in environment preset (dev|staging|prod)")
    parser.add_argument("--account-id", help="AWS account id (defaults to the STS caller identity)")
    parser.add_argument("--region", help="AWS region (defaults to the preset or boto3 session region)")
    parser.add_argument("--partition", default="aws", help="AWS partition")
    parser.add_argument(
        "--format",
        choices=("outputs", "graph"),
        default="outputs",
        help="Print projected outputs or the full resource graph",
    )
    return parser.parse_args(argv)


def _load(args: argparse.Namespace) -> tuple[Dict[str, Any], Optional[str]]:
    if args.config:
        return load_config_file(args.config), None
    env_config = get_environment_config(args.environment)
    return with_code_hash(env_config["pipeline"]), env_config.get("region")


def _resolve_context(args: argparse.Namespace, preset_region: Optional[str]) -> AccountContext:
    region = args.region or preset_region or boto3.session.Session().region_name
    if not region:
        raise RuntimeError("AWS region could not be determined; pass --region")
    account_id = args.account_id
    if not account_id:
        try:
            identity = boto3.client("sts", region_name=region).get_caller_identity()
        except (BotoCoreError, ClientError) as exc:
            raise RuntimeError(f"Failed to resolve AWS account id: {exc}; pass --account-id") from exc
        account_id = identity["Account"]
    return AccountContext(account_id=account_id, region=region, partition=args.partition)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    try:
        config, preset_region = _load(args)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    try:
        settings = validate(config)
    except ConfigValidationError as exc:
        print(f"Configuration is invalid ({len(exc.errors)} error(s)):", file=sys.stderr)
        for error in exc.errors:
            print(f"  - {error}", file=sys.stderr)
        return EXIT_INVALID

    try:
        ctx = _resolve_context(args, preset_region)
    except RuntimeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    graph = assemble(settings, ctx)

    payload = graph.to_dict() if args.format == "graph" else project(graph)
    print(json.dumps(payload, indent=2, sort_keys=args.format == "graph"))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
