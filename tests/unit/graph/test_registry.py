from typing import Dict

import pytest

from event_pipeline.graph import NodeId, PRESENCE, materialize, node_attributes, validate
from event_pipeline.graph.registry import NAME_SUFFIXES, NODE_ORDER, RESOURCE_TYPES, node_name
from tests.fixtures.config_builders import (
    TEST_CONTEXT,
    build_pipeline_config,
    config_for_toggles,
    expected_nodes,
    toggle_combinations,
    toggle_id,
)


pytestmark = [pytest.mark.unit, pytest.mark.graph]


@pytest.mark.parametrize("toggles", list(toggle_combinations()), ids=toggle_id)
def test_presence_truth_table(toggles: Dict[str, bool]) -> None:
    """
    Given: 다섯 개 토글의 32가지 조합
    When: materialize 호출
    Then: 조합별 기대 노드 집합과 정확히 일치
    """
    settings = validate(config_for_toggles(toggles))

    assert {str(node) for node in materialize(settings)} == expected_nodes(toggles)


def test_alarms_without_dlq_keep_topic_but_drop_depth_alarm() -> None:
    settings = validate(build_pipeline_config(enable_alarms=True, alarm_email="ops@example.com", enable_dlq=False))

    nodes = materialize(settings)

    assert NodeId.ALARM_TOPIC in nodes
    assert NodeId.ALARM_SUBSCRIPTION in nodes
    assert NodeId.DLQ_DEPTH_ALARM not in nodes


def test_registry_tables_cover_every_node() -> None:
    assert set(PRESENCE) == set(NodeId)
    assert set(RESOURCE_TYPES) == set(NodeId)
    assert NODE_ORDER == tuple(NodeId)


def test_node_id_renders_as_plain_value() -> None:
    assert str(NodeId.LAMBDA_EVENT_SOURCE_MAPPING) == "lambda_event_source_mapping"
    assert NodeId("queue") is NodeId.QUEUE


def test_derived_names_follow_convention() -> None:
    """
    Given: name="test-pipeline"
    When: 노드 이름 계산
    Then: <name>-<suffix> 규칙을 따름
    """
    settings = validate(build_pipeline_config())

    assert node_name(NodeId.QUEUE, settings) == "test-pipeline-queue"
    assert node_name(NodeId.EVENT_RULE, settings) == "test-pipeline-rule"
    assert node_name(NodeId.DLQ, settings) == "test-pipeline-dlq"
    assert node_name(NodeId.EVENT_BUS, settings) == "test-pipeline-bus"
    assert node_name(NodeId.LAMBDA, settings) == "test-pipeline-processor"
    assert node_name(NodeId.LAMBDA_ROLE, settings) == "test-pipeline-processor-role"
    assert node_name(NodeId.ALARM_TOPIC, settings) == "test-pipeline-alarms"
    assert node_name(NodeId.DLQ_DEPTH_ALARM, settings) == "test-pipeline-dlq-depth"
    assert node_name(NodeId.LAMBDA_ERROR_ALARM, settings) == "test-pipeline-lambda-errors"
    assert node_name(NodeId.LAMBDA_THROTTLE_ALARM, settings) == "test-pipeline-lambda-throttles"
    assert node_name(NodeId.LOG_GROUP, settings) == "/aws/events/test-pipeline"


def test_wiring_nodes_have_no_name() -> None:
    settings = validate(build_pipeline_config())

    for node in (NodeId.QUEUE_POLICY, NodeId.QUEUE_TARGET, NodeId.LOGGING_TARGET, NodeId.ALARM_SUBSCRIPTION):
        assert node not in NAME_SUFFIXES
        assert node_name(node, settings) is None


def test_node_attributes_build_arns_from_context() -> None:
    settings = validate(build_pipeline_config())

    queue = node_attributes(NodeId.QUEUE, settings, TEST_CONTEXT)
    function = node_attributes(NodeId.LAMBDA, settings, TEST_CONTEXT)
    role = node_attributes(NodeId.LAMBDA_ROLE, settings, TEST_CONTEXT)
    log_group = node_attributes(NodeId.LOG_GROUP, settings, TEST_CONTEXT)

    assert queue.arn == "arn:aws:sqs:us-east-1:123456789012:test-pipeline-queue"
    assert queue.url == "https://sqs.us-east-1.amazonaws.com/123456789012/test-pipeline-queue"
    assert function.arn == "arn:aws:lambda:us-east-1:123456789012:function:test-pipeline-processor"
    assert role.arn == "arn:aws:iam::123456789012:role/test-pipeline-processor-role"
    assert log_group.arn == "arn:aws:logs:us-east-1:123456789012:log-group:/aws/events/test-pipeline"
    assert function.url is None
