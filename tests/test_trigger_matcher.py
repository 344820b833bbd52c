"""Tests for mapping inbound events to trigger nodes."""

import pytest

from chatflow.engine.trigger_matcher import TriggerMatcher
from chatflow.engine.types import InboundEvent
from tests.helpers import SESSION, TENANT, chain, make_workflow, message, node

pytestmark = pytest.mark.unit


@pytest.fixture
def matcher() -> TriggerMatcher:
    return TriggerMatcher()


def message_workflow(workflow_id: str, pattern: str, match_type: str = "contains", **extra):
    return make_workflow(
        [node("t", "TRIGGER_MESSAGE", pattern=pattern, matchType=match_type, **extra), node("s", "SEND_MESSAGE", message="hi")],
        chain("t", "s"),
        workflow_id=workflow_id,
    )


class TestTextMatching:
    """Tests for pattern modes."""

    @pytest.mark.parametrize(
        "text,pattern,match_type,expected",
        [
            ("Hello", "Hello", "exact", True),
            ("hello", "Hello", "exact", False),
            ("I want a REFUND now", "refund", "contains", True),
            ("anything", "", "contains", True),
            ("order 1234", r"order \d+", "regex", True),
            ("my order 1234 please", r"order \d+", "regex", True),
            ("order abc", r"^order \d+$", "regex", False),
            ("abc", "(", "regex", False),
        ],
    )
    def test_match_text(self, matcher: TriggerMatcher, text, pattern, match_type, expected):
        assert matcher.match_text(text, pattern, match_type) is expected


class TestMatch:
    """Tests for scanning workflows."""

    def test_every_matching_workflow_yields_one_match(self, matcher: TriggerMatcher):
        workflows = [
            message_workflow("wf-a", "price"),
            message_workflow("wf-b", "PRICE list"),
            message_workflow("wf-c", "refund"),
        ]

        matches = matcher.match(message("price list please"), workflows)

        assert [m.workflow.id for m in matches] == ["wf-a", "wf-b"]

    def test_first_trigger_in_declaration_order_wins(self, matcher: TriggerMatcher):
        workflow = make_workflow(
            [
                node("t1", "TRIGGER_MESSAGE", pattern="hi"),
                node("t2", "TRIGGER_MESSAGE", pattern="hi there"),
                node("s", "SEND_MESSAGE", message="x"),
            ],
            chain("t1", "s") + chain("t2", "s"),
        )

        matches = matcher.match(message("hi there"), [workflow])

        assert len(matches) == 1
        assert matches[0].trigger_node.id == "t1"

    def test_inactive_and_foreign_workflows_are_skipped(self, matcher: TriggerMatcher):
        inactive = message_workflow("wf-off", "hi")
        inactive.is_active = False
        foreign = make_workflow(
            [node("t", "TRIGGER_MESSAGE", pattern="hi")], [], workflow_id="wf-other", tenant_id="tenant-2"
        )

        assert matcher.match(message("hi"), [inactive, foreign]) == []

    def test_session_filter(self, matcher: TriggerMatcher):
        workflow = message_workflow("wf-a", "hi", sessionId="other-session")

        assert matcher.match(message("hi"), [workflow]) == []
        assert len(matcher.match(message("hi", session_id="other-session"), [workflow])) == 1

    def test_signals_only_match_their_trigger_type(self, matcher: TriggerMatcher):
        workflow = make_workflow(
            [
                node("m", "TRIGGER_MESSAGE", pattern=""),
                node("sched", "TRIGGER_SCHEDULE", scheduleType="interval", intervalMinutes=5),
                node("man", "TRIGGER_MANUAL"),
            ],
            [],
        )
        schedule = InboundEvent(kind="schedule", tenant_id=TENANT, session_id=SESSION, contact_id="c", workflow_id="wf-1")
        manual = InboundEvent(kind="manual", tenant_id=TENANT, session_id=SESSION, contact_id="c", workflow_id="wf-1")

        assert matcher.match(schedule, [workflow])[0].trigger_node.id == "sched"
        assert matcher.match(manual, [workflow])[0].trigger_node.id == "man"
        assert matcher.match(message("x"), [workflow])[0].trigger_node.id == "m"

    def test_targeted_signal_only_matches_its_workflow(self, matcher: TriggerMatcher):
        workflows = [
            make_workflow([node("man", "TRIGGER_MANUAL")], [], workflow_id="wf-a"),
            make_workflow([node("man", "TRIGGER_MANUAL")], [], workflow_id="wf-b"),
        ]
        event = InboundEvent(kind="manual", tenant_id=TENANT, session_id=SESSION, contact_id="c", workflow_id="wf-b")

        assert [m.workflow.id for m in matcher.match(event, workflows)] == ["wf-b"]
