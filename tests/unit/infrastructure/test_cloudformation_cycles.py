"""Ensure synthesized CloudFormation templates have no circular dependencies.

Every toggle combination is synthesized and the template's resources are
ordered by their edges (``DependsOn``, ``Ref`` and ``Fn::GetAtt``). Rule
targets are folded into the rule, which then waits on the queue policy, so a
policy that also waited on the rule would leave both unordered.
"""

from __future__ import annotations

from typing import Any, Dict, List, Set

import pytest
from aws_cdk import App, Environment, Stack
from aws_cdk.assertions import Template

from event_pipeline.stacks import EventPipelineStack
from tests.fixtures.config_builders import (
    TEST_ACCOUNT,
    TEST_REGION,
    config_for_toggles,
    toggle_combinations,
    toggle_id,
)


pytestmark = [pytest.mark.unit, pytest.mark.infrastructure]


def _referenced_ids(definition: Dict[str, Any]) -> Set[str]:
    """Logical IDs a resource definition points at, explicitly or through intrinsics."""
    depends_on = definition.get("DependsOn", [])
    found: Set[str] = {depends_on} if isinstance(depends_on, str) else set(depends_on)

    pending: List[Any] = [definition.get("Properties", {})]
    while pending:
        value = pending.pop()
        if isinstance(value, list):
            pending.extend(value)
            continue
        if not isinstance(value, dict):
            continue
        if isinstance(value.get("Ref"), str):
            found.add(value["Ref"])
        get_att = value.get("Fn::GetAtt")
        if isinstance(get_att, list) and get_att:
            found.add(get_att[0])
        elif isinstance(get_att, str):
            found.add(get_att.partition(".")[0])
        pending.extend(value.values())
    return found


def _edges(template: Dict[str, Any]) -> Dict[str, Set[str]]:
    resources = template.get("Resources", {})
    return {
        logical_id: {ref for ref in _referenced_ids(definition) if ref in resources and ref != logical_id}
        for logical_id, definition in resources.items()
    }


def _unorderable(edges: Dict[str, Set[str]]) -> List[str]:
    """Resources left over once every orderable one is peeled off; empty when acyclic."""
    waiting = {logical_id: set(deps) for logical_id, deps in edges.items()}
    ready = [logical_id for logical_id, deps in waiting.items() if not deps]
    while ready:
        done = ready.pop()
        del waiting[done]
        for logical_id, deps in waiting.items():
            if done in deps:
                deps.discard(done)
                if not deps:
                    ready.append(logical_id)
    return sorted(waiting)


def _assert_no_cycles(stack: Stack) -> None:
    stuck = _unorderable(_edges(Template.from_stack(stack).to_json()))
    if stuck:
        pytest.fail(f"Resources caught in a dependency cycle: {', '.join(stuck)}")


@pytest.mark.parametrize("toggles", list(toggle_combinations()), ids=toggle_id)
def test_pipeline_stack_has_no_cycles(toggles: Dict[str, bool]) -> None:
    app = App()
    stack = EventPipelineStack(
        app,
        "EventPipelineCycles",
        environment="dev",
        config=config_for_toggles(toggles),
        env=Environment(account=TEST_ACCOUNT, region=TEST_REGION),
    )
    _assert_no_cycles(stack)


def test_cycle_members_are_reported() -> None:
    """
    Given: A와 B가 서로를 기다리고 C는 B를 기다리는 그래프
    When: 순서 계산
    Then: 순서를 정할 수 없는 A, B, C가 보고됨
    """
    edges = {"A": {"B"}, "B": {"A"}, "C": {"B"}, "D": set()}

    assert _unorderable(edges) == ["A", "B", "C"]


def test_references_inside_intrinsics_count_as_edges() -> None:
    template = {
        "Resources": {
            "Queue": {"Properties": {}},
            "Policy": {
                "DependsOn": "Rule",
                "Properties": {"Queues": [{"Ref": "Queue"}], "Arn": {"Fn::GetAtt": "Queue.Arn"}},
            },
            "Rule": {"Properties": {"Targets": [{"Arn": {"Fn::GetAtt": ["Queue", "Arn"]}}]}},
        }
    }

    assert _edges(template) == {"Queue": set(), "Policy": {"Rule", "Queue"}, "Rule": {"Queue"}}
