"""Resource name and ARN helpers."""

from __future__ import annotations

from event_pipeline.graph.models import AccountContext

DEFAULT_EVENT_BUS_NAME = "default"


def derived_name(prefix: str, suffix: str) -> str:
    """Return ``<prefix>-<suffix>``."""
    base = str(prefix or "").strip()
    if not base:
        raise ValueError("Name prefix must be provided")
    return f"{base}-{suffix}"


def event_log_group_name(prefix: str) -> str:
    """EventBridge only delivers to log groups under ``/aws/events/``."""
    return f"/aws/events/{prefix}"


def _arn(ctx: AccountContext, service: str, resource: str, *, regional: bool = True) -> str:
    region = ctx.region if regional else ""
    return f"arn:{ctx.partition}:{service}:{region}:{ctx.account_id}:{resource}"


def event_bus_arn(ctx: AccountContext, bus_name: str) -> str:
    return _arn(ctx, "events", f"event-bus/{bus_name}")


def event_rule_arn(ctx: AccountContext, bus_name: str, rule_name: str) -> str:
    """Return the rule ARN; rules on custom buses carry the bus name in the path."""
    if bus_name == DEFAULT_EVENT_BUS_NAME:
        return _arn(ctx, "events", f"rule/{rule_name}")
    return _arn(ctx, "events", f"rule/{bus_name}/{rule_name}")


def queue_arn(ctx: AccountContext, queue_name: str) -> str:
    return _arn(ctx, "sqs", queue_name)


def queue_url(ctx: AccountContext, queue_name: str) -> str:
    return f"https://sqs.{ctx.region}.{ctx.url_suffix}/{ctx.account_id}/{queue_name}"


def function_arn(ctx: AccountContext, function_name: str) -> str:
    return _arn(ctx, "lambda", f"function:{function_name}")


def role_arn(ctx: AccountContext, role_name: str) -> str:
    return _arn(ctx, "iam", f"role/{role_name}", regional=False)


def managed_policy_arn(ctx: AccountContext, policy_path: str) -> str:
    return f"arn:{ctx.partition}:iam::aws:policy/{policy_path}"


def log_group_arn(ctx: AccountContext, log_group_name: str) -> str:
    return _arn(ctx, "logs", f"log-group:{log_group_name}")


def topic_arn(ctx: AccountContext, topic_name: str) -> str:
    return _arn(ctx, "sns", topic_name)


def alarm_arn(ctx: AccountContext, alarm_name: str) -> str:
    return _arn(ctx, "cloudwatch", f"alarm:{alarm_name}")
