import pytest

from event_pipeline.graph import OUTPUT_NAMES, build_graph, project
from tests.fixtures.config_builders import TEST_CONTEXT, build_full_config, build_pipeline_config


pytestmark = [pytest.mark.unit, pytest.mark.graph]

OPTIONAL_OUTPUTS = {
    "dlq_name",
    "dlq_arn",
    "dlq_url",
    "lambda_function_name",
    "lambda_function_arn",
    "lambda_role_arn",
    "log_group_name",
    "log_group_arn",
    "alarm_topic_arn",
    "dlq_alarm_name",
    "lambda_error_alarm_name",
    "lambda_throttle_alarm_name",
}


def test_every_output_key_is_always_present() -> None:
    outputs = project(build_graph(build_pipeline_config(), TEST_CONTEXT))

    assert tuple(outputs) == OUTPUT_NAMES
    assert len(OUTPUT_NAMES) == 19


def test_absent_nodes_project_to_none() -> None:
    """
    Given: 모든 선택 그룹이 비활성화된 설정
    When: 출력 투영
    Then: 선택 출력은 빈 문자열이 아닌 정확히 None
    """
    outputs = project(build_graph(build_pipeline_config(enable_dlq=False), TEST_CONTEXT))

    for name in OPTIONAL_OUTPUTS:
        assert outputs[name] is None, name
    for name in set(OUTPUT_NAMES) - OPTIONAL_OUTPUTS:
        assert isinstance(outputs[name], str) and outputs[name], name


def test_full_config_outputs() -> None:
    outputs = project(build_graph(build_full_config(), TEST_CONTEXT))

    assert outputs["event_bus_name"] == "test-pipeline-bus"
    assert outputs["event_rule_name"] == "test-pipeline-rule"
    assert outputs["queue_name"] == "test-pipeline-queue"
    assert outputs["queue_url"] == "https://sqs.us-east-1.amazonaws.com/123456789012/test-pipeline-queue"
    assert outputs["dlq_name"] == "test-pipeline-dlq"
    assert outputs["lambda_function_name"] == "test-pipeline-processor"
    assert outputs["log_group_name"] == "/aws/events/test-pipeline"
    assert outputs["alarm_topic_arn"] == "arn:aws:sns:us-east-1:123456789012:test-pipeline-alarms"
    assert outputs["dlq_alarm_name"] == "test-pipeline-dlq-depth"
    assert outputs["lambda_error_alarm_name"] == "test-pipeline-lambda-errors"
    assert outputs["lambda_throttle_alarm_name"] == "test-pipeline-lambda-throttles"
    assert all(value is not None for value in outputs.values())


def test_default_bus_outputs() -> None:
    outputs = project(build_graph(build_pipeline_config(), TEST_CONTEXT))

    assert outputs["event_bus_name"] == "default"
    assert outputs["event_bus_arn"] == "arn:aws:events:us-east-1:123456789012:event-bus/default"


def test_projection_is_stable() -> None:
    config = build_full_config()

    assert project(build_graph(config, TEST_CONTEXT)) == project(build_graph(config, TEST_CONTEXT))
