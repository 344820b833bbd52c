"""Tests for the execution state machine."""

import asyncio

import pytest

from chatflow.engine.event_publisher import EventPublisher
from chatflow.engine.execution_engine import ExecutionEngine
from chatflow.engine.node_registry import register_all_nodes
from chatflow.engine.types import EventType, ExecutionStatus
from chatflow.storage import ExecutionStore
from tests.helpers import (
    T0,
    BlockingSandbox,
    chain,
    edge,
    make_workflow,
    message,
    node,
)

pytestmark = pytest.mark.unit


def trigger(**config):
    return node("trigger", "TRIGGER_MESSAGE", pattern=config.pop("pattern", ""), **config)


async def start(engine: ExecutionEngine, workflow, text: str = "hello"):
    return await engine.start(workflow, workflow.get_node("trigger"), message(text))


class GatedSaveStore(ExecutionStore):
    """Pauses the first save of a WAITING execution until `release` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.reached = asyncio.Event()
        self.release = asyncio.Event()

    async def save(self, execution):
        if execution.status == ExecutionStatus.WAITING and not self.release.is_set():
            self.reached.set()
            await self.release.wait()
        await super().save(execution)


class TestLinearRun:
    """Tests for a run that needs no replies."""

    async def test_runs_to_completion(self, engine, save_workflow, channel, events):
        workflow = await save_workflow(
            make_workflow(
                [
                    trigger(),
                    node("set", "EDIT_FIELDS", fields=[{"name": "name", "value": "Ana"}]),
                    node("greet", "SEND_MESSAGE", message="Hi {{variables.name}}, you said {{variables.triggerMessage}}"),
                ],
                chain("trigger", "set", "greet"),
            )
        )

        execution = await start(engine, workflow, "hello")

        assert execution.status == ExecutionStatus.COMPLETED
        assert execution.current_node_id is None
        assert execution.completed_at == T0
        assert channel.texts == ["Hi Ana, you said hello"]
        assert execution.context.output["final"] == {"triggerMessage": "hello", "name": "Ana"}
        assert events.types == [
            "execution.started",
            "node.executed",
            "node.executed",
            "execution.completed",
        ]

    async def test_context_is_seeded_from_event(self, engine, save_workflow):
        workflow = await save_workflow(make_workflow([trigger(), node("end", "END")], chain("trigger", "end")))

        execution = await start(engine, workflow, "hi")

        assert execution.context.globals == {
            "workflowId": "wf-1",
            "workflowName": "Workflow wf-1",
            "tenantId": "tenant-1",
            "executionId": execution.id,
            "sessionId": "session-1",
            "contactId": "5511999990000",
        }
        assert execution.context.input["text"] == "hi"
        assert execution.context.input["kind"] == "message"

    async def test_node_events_carry_duration(self, engine, save_workflow, events):
        workflow = await save_workflow(
            make_workflow([trigger(), node("send", "SEND_MESSAGE", message="x")], chain("trigger", "send"))
        )

        await start(engine, workflow)

        [executed] = events.of_type(EventType.NODE_EXECUTED)
        assert executed.data["nodeId"] == "send"
        assert executed.data["nodeType"] == "SEND_MESSAGE"
        assert isinstance(executed.data["duration"], int)

    async def test_end_node_selects_output_variables(self, engine, save_workflow, events):
        workflow = await save_workflow(
            make_workflow(
                [
                    trigger(),
                    node("set", "EDIT_FIELDS", mode="json", jsonData={"userName": "Ana", "secret": "x"}),
                    node("end", "END", outputVariables=["userName", "notSet"]),
                ],
                chain("trigger", "set", "end"),
            )
        )

        execution = await start(engine, workflow)

        assert execution.context.output["final"] == {"userName": "Ana"}
        [completed] = events.of_type(EventType.EXECUTION_COMPLETED)
        assert completed.data["output"] == {"userName": "Ana"}


class TestBranching:
    """Tests for CONDITION and SWITCH routing."""

    def condition_workflow(self, data):
        return make_workflow(
            [
                trigger(),
                node("set", "EDIT_FIELDS", mode="json", jsonData=data),
                node("check", "CONDITION", expression="variables.x == '1'"),
                node("yes", "SEND_MESSAGE", message="yes"),
                node("no", "SEND_MESSAGE", message="no"),
            ],
            chain("trigger", "set", "check") + [edge("check", "yes", "true"), edge("check", "no", "false")],
        )

    @pytest.mark.parametrize(
        "data,expected",
        [({"x": "1"}, "yes"), ({"x": 1}, "yes"), ({"x": "2"}, "no"), ({}, "no")],
    )
    async def test_condition_routes(self, engine, save_workflow, channel, data, expected):
        workflow = await save_workflow(self.condition_workflow(data))

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.COMPLETED
        assert channel.texts == [expected]

    async def test_condition_with_malformed_expression_errors(self, engine, save_workflow, channel):
        workflow = self.condition_workflow({})
        workflow.get_node("check").config["expression"] = "variables.x =="
        await save_workflow(workflow)

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.ERROR
        assert "Missing operand" in execution.error
        assert channel.sent == []

    def switch_workflow(self, option, fallback=None):
        config = {
            "rules": [
                {"value1": "{{variables.opt}}", "operator": "==", "value2": "a", "outputKey": "A"},
                {"value1": "{{variables.opt}}", "operator": "==", "value2": "b", "outputKey": "B"},
            ]
        }
        if fallback:
            config["fallbackOutput"] = fallback
        return make_workflow(
            [
                trigger(),
                node("set", "EDIT_FIELDS", mode="json", jsonData={"opt": option}),
                node("route", "SWITCH", **config),
                node("a", "SEND_MESSAGE", message="went A"),
                node("other", "SEND_MESSAGE", message="went other"),
            ],
            chain("trigger", "set", "route") + [edge("route", "a", "A"), edge("route", "other", "OTHER")],
        )

    async def test_switch_first_matching_rule(self, engine, save_workflow, channel):
        workflow = await save_workflow(self.switch_workflow("a"))

        await start(engine, workflow)

        assert channel.texts == ["went A"]

    async def test_switch_fallback(self, engine, save_workflow, channel):
        workflow = await save_workflow(self.switch_workflow("z", fallback="OTHER"))

        await start(engine, workflow)

        assert channel.texts == ["went other"]

    async def test_switch_rule_without_edge_errors(self, engine, save_workflow, channel):
        """Rule B matches but no edge carries its key."""
        workflow = await save_workflow(self.switch_workflow("b"))

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.ERROR
        assert 'No matching edge for key "B"' in execution.error

    async def test_switch_without_match_or_fallback_errors(self, engine, save_workflow):
        workflow = await save_workflow(self.switch_workflow("z"))

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.ERROR
        assert "No matching edge" in execution.error

    async def test_ambiguous_edges_error(self, engine, save_workflow):
        workflow = await save_workflow(
            make_workflow(
                [
                    trigger(),
                    node("check", "CONDITION", expression="true"),
                    node("a", "END"),
                    node("b", "END"),
                ],
                chain("trigger", "check") + [edge("check", "a", "true"), edge("check", "b", "true")],
            )
        )

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.ERROR
        assert "Ambiguous" in execution.error


class TestWaitReply:
    """Tests for suspending on WAIT_REPLY."""

    def workflow(self, **wait_config):
        config = {"saveAs": "answer", "timeoutSeconds": 5, **wait_config}
        return make_workflow(
            [
                trigger(),
                node("ask", "SEND_MESSAGE", message="Your name?"),
                node("wait", "WAIT_REPLY", **config),
                node("thanks", "SEND_MESSAGE", message="Thanks {{variables.answer}}"),
                node("reminder", "SEND_MESSAGE", message="Still there?"),
            ],
            chain("trigger", "ask", "wait", "thanks"),
        )

    async def test_suspends_with_deadline(self, engine, save_workflow, events):
        workflow = await save_workflow(self.workflow())

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.WAITING
        assert execution.current_node_id == "wait"
        assert (execution.expires_at - T0).total_seconds() == 5
        assert engine.timeout_scheduler.deadline(execution.id) == execution.expires_at
        [waiting] = events.of_type(EventType.EXECUTION_WAITING)
        assert waiting.data == {"currentNodeId": "wait", "timeoutSeconds": 5.0}

    async def test_default_timeout(self, engine, save_workflow, settings):
        workflow = self.workflow()
        del workflow.get_node("wait").config["timeoutSeconds"]
        await save_workflow(workflow)

        execution = await start(engine, workflow)

        assert (execution.expires_at - T0).total_seconds() == settings.wait_reply_default_timeout_seconds

    async def test_zero_timeout_is_rejected(self, engine, save_workflow):
        """A zero timeout is a config error, not a request for the default."""
        workflow = await save_workflow(self.workflow(timeoutSeconds=0))

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.ERROR
        assert "Invalid WAIT_REPLY config" in execution.error
        assert execution.expires_at is None

    async def test_small_timeout_is_kept(self, engine, save_workflow, settings):
        workflow = await save_workflow(self.workflow(timeoutSeconds=0.5))

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.WAITING
        assert (execution.expires_at - T0).total_seconds() == 0.5
        assert settings.wait_reply_default_timeout_seconds != 0.5

    async def test_reply_resumes_and_saves_answer(self, engine, save_workflow, execution_store, channel, clock):
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)
        clock.advance(3)

        assert await engine.resume(execution.id, message("Bruno"))

        stored = await execution_store.get(execution.id)
        assert stored.status == ExecutionStatus.COMPLETED
        assert stored.context.variables["answer"] == "Bruno"
        assert stored.interaction_count == 1
        assert channel.texts == ["Your name?", "Thanks Bruno"]
        assert engine.timeout_scheduler.deadline(execution.id) is None

    async def test_reply_from_another_contact_is_rejected(self, engine, save_workflow, execution_store):
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)

        assert not await engine.resume(execution.id, message("hi", contact_id="someone-else"))
        assert (await execution_store.get(execution.id)).status == ExecutionStatus.WAITING

    async def test_resume_of_non_waiting_execution_is_rejected(self, engine, save_workflow):
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)
        assert await engine.resume(execution.id, message("first"))

        assert not await engine.resume(execution.id, message("second"))
        assert not await engine.resume("exec_missing", message("x"))

    async def test_timeout_expires_at_waiting_node(self, engine, save_workflow, execution_store, clock, channel, events):
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)

        assert not await engine.expire(execution.id)
        clock.advance(5)
        assert await engine.expire(execution.id)

        stored = await execution_store.get(execution.id)
        assert stored.status == ExecutionStatus.EXPIRED
        assert stored.current_node_id == "wait"
        assert stored.completed_at == clock.now
        assert channel.texts == ["Your name?"]
        assert EventType.EXECUTION_EXPIRED.value in events.types

    async def test_late_reply_is_handled_as_expiry(self, engine, save_workflow, execution_store, clock, channel):
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)
        clock.advance(10)

        assert await engine.resume(execution.id, message("too late"))

        stored = await execution_store.get(execution.id)
        assert stored.status == ExecutionStatus.EXPIRED
        assert "answer" not in stored.context.variables
        assert channel.texts == ["Your name?"]

    async def test_timeout_goto_node(self, engine, save_workflow, execution_store, clock, channel):
        workflow = await save_workflow(self.workflow(onTimeout="GOTO_NODE", timeoutTargetNodeId="reminder"))
        execution = await start(engine, workflow)
        clock.advance(6)

        assert await engine.expire(execution.id)

        stored = await execution_store.get(execution.id)
        assert stored.status == ExecutionStatus.COMPLETED
        assert stored.interaction_count == 1
        assert channel.texts == ["Your name?", "Still there?"]

    async def test_scheduler_tick_expires_due_executions(self, engine, save_workflow, execution_store, clock):
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)
        clock.advance(5)

        assert await engine.timeout_scheduler.tick() == 1
        await engine.timeout_scheduler.join()

        assert (await execution_store.get(execution.id)).status == ExecutionStatus.EXPIRED


class TestWait:
    """Tests for fixed delays."""

    def workflow(self, **wait_config):
        return make_workflow(
            [
                trigger(),
                node("pause", "WAIT", amount=2, unit="minutes", **wait_config),
                node("after", "SEND_MESSAGE", message="after {{variables.note}}"),
            ],
            chain("trigger", "pause", "after"),
        )

    async def test_deadline_continues_along_edge(self, engine, save_workflow, execution_store, clock, channel):
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)
        assert (execution.expires_at - T0).total_seconds() == 120

        clock.advance(60)
        assert not await engine.expire(execution.id)
        clock.advance(60)
        assert await engine.expire(execution.id)

        stored = await execution_store.get(execution.id)
        assert stored.status == ExecutionStatus.COMPLETED
        assert channel.texts == ["after "]

    async def test_replies_are_ignored_by_default(self, engine, save_workflow, execution_store):
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)

        assert not await engine.resume(execution.id, message("hi"))
        assert (await execution_store.get(execution.id)).status == ExecutionStatus.WAITING

    async def test_resume_on_message(self, engine, save_workflow, channel):
        workflow = await save_workflow(self.workflow(resumeOnMessage=True, saveAs="note"))
        execution = await start(engine, workflow)

        assert await engine.resume(execution.id, message("early"))

        assert channel.texts == ["after early"]


class TestConcurrency:
    """Tests for competing transitions out of WAITING."""

    def workflow(self):
        return make_workflow(
            [
                trigger(),
                node("wait", "WAIT_REPLY", saveAs="answer", timeoutSeconds=5),
                node("done", "SEND_MESSAGE", message="got {{variables.answer}}"),
            ],
            chain("trigger", "wait", "done"),
        )

    async def test_resume_and_expire_race_has_one_winner(self, engine, save_workflow, execution_store, clock, events):
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)
        clock.advance(5)

        results = await asyncio.gather(
            engine.resume(execution.id, message("now")),
            engine.expire(execution.id),
        )

        assert sorted(results) == [False, True]
        assert (await execution_store.get(execution.id)).status == ExecutionStatus.EXPIRED
        assert len(events.of_type(EventType.EXECUTION_EXPIRED)) == 1

    async def test_two_engines_on_one_store_have_one_winner(
        self, engine, save_workflow, execution_store, workflow_store, services, settings, clock, channel
    ):
        """Per-engine locks do not help here; the store's compare-and-set does."""
        other = ExecutionEngine(
            execution_store,
            workflow_store,
            EventPublisher(),
            services=services,
            registry=register_all_nodes(),
            settings=settings,
            clock=clock,
        )
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)
        clock.advance(1)

        results = await asyncio.gather(
            engine.resume(execution.id, message("one")),
            other.resume(execution.id, message("two")),
        )

        assert sorted(results) == [False, True]
        assert len(channel.texts) == 1
        assert (await execution_store.get(execution.id)).status == ExecutionStatus.COMPLETED

    async def test_store_transition_is_compare_and_set(self, engine, save_workflow, execution_store):
        workflow = await save_workflow(self.workflow())
        execution = await start(engine, workflow)

        results = await asyncio.gather(
            execution_store.transition(execution.id, ExecutionStatus.WAITING, ExecutionStatus.RUNNING),
            execution_store.transition(execution.id, ExecutionStatus.WAITING, ExecutionStatus.EXPIRED),
        )

        assert results == [True, False]
        assert (await execution_store.get(execution.id)).status == ExecutionStatus.RUNNING

    async def test_blocked_continuation_does_not_delay_other_expiries(
        self, engine, save_workflow, execution_store, clock, services
    ):
        sandbox = BlockingSandbox()
        services.sandbox = sandbox
        slow = await save_workflow(
            make_workflow(
                [trigger(), node("pause", "WAIT", amount=1, unit="seconds"), node("code", "CODE", code="result = 1")],
                chain("trigger", "pause", "code"),
                workflow_id="wf-slow",
            )
        )
        fast = await save_workflow(self.workflow())
        blocked = await engine.start(slow, slow.get_node("trigger"), message("a", contact_id="c1"))
        waiting = await engine.start(fast, fast.get_node("trigger"), message("b", contact_id="c2"))
        clock.advance(5)

        assert await engine.timeout_scheduler.tick() == 2
        await asyncio.wait_for(sandbox.started.wait(), timeout=1)
        for _ in range(50):
            if (await execution_store.get(waiting.id)).status != ExecutionStatus.WAITING:
                break
            await asyncio.sleep(0.01)

        assert (await execution_store.get(waiting.id)).status == ExecutionStatus.EXPIRED
        assert (await execution_store.get(blocked.id)).status == ExecutionStatus.RUNNING

        assert await engine.cancel(blocked.id, "cleanup")
        await asyncio.wait_for(engine.timeout_scheduler.join(), timeout=1)
        assert (await execution_store.get(blocked.id)).status == ExecutionStatus.ERROR


class TestLoopGuard:
    """Tests for the step ceiling."""

    async def test_cycle_without_waits_stops_at_limit(self, engine, save_workflow, channel, settings):
        workflow = await save_workflow(
            make_workflow(
                [trigger(), node("a", "SEND_MESSAGE", message="a"), node("b", "SEND_MESSAGE", message="b")],
                chain("trigger", "a", "b", "a"),
            )
        )

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.ERROR
        assert "Loop guard" in execution.error
        assert len(channel.sent) == settings.loop_guard_max_steps

    async def test_interactions_count_towards_limit(self, engine, save_workflow, execution_store, clock, channel, settings):
        settings.loop_guard_max_steps = 5
        workflow = await save_workflow(
            make_workflow(
                [trigger(), node("pause", "WAIT", amount=1), node("ping", "SEND_MESSAGE", message="ping")],
                chain("trigger", "pause", "ping", "pause"),
            )
        )
        execution = await start(engine, workflow)

        for _ in range(10):
            clock.advance(1)
            if not await engine.expire(execution.id):
                break

        stored = await execution_store.get(execution.id)
        assert stored.status == ExecutionStatus.ERROR
        assert "Loop guard" in stored.error
        assert stored.interaction_count == 4
        assert len(channel.sent) == 4


class TestFailures:
    """Tests for node errors."""

    async def test_missing_channel_errors(self, engine, save_workflow, services, events):
        services.channel = None
        workflow = await save_workflow(
            make_workflow([trigger(), node("send", "SEND_MESSAGE", message="x")], chain("trigger", "send"))
        )

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.ERROR
        assert execution.error == "No messaging channel configured"
        [error] = events.of_type(EventType.EXECUTION_ERROR)
        assert error.data["currentNodeId"] == "send"

    async def test_channel_failure_is_not_retried(self, engine, save_workflow, channel):
        channel.error = ConnectionError("gateway down")
        workflow = await save_workflow(
            make_workflow([trigger(), node("send", "SEND_MESSAGE", message="x")], chain("trigger", "send"))
        )

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.ERROR
        assert "gateway down" in execution.error

    async def test_invalid_config_errors(self, engine, save_workflow):
        workflow = await save_workflow(
            make_workflow([trigger(), node("send", "SEND_BUTTONS", message="pick", buttons=[])], chain("trigger", "send"))
        )

        execution = await start(engine, workflow)

        assert execution.status == ExecutionStatus.ERROR
        assert "Invalid SEND_BUTTONS config" in execution.error


class TestCancellation:
    """Tests for cancel and cancel_workflow."""

    def waiting_workflow(self, workflow_id="wf-1"):
        return make_workflow(
            [trigger(), node("wait", "WAIT_REPLY", saveAs="a", timeoutSeconds=60), node("end", "END")],
            chain("trigger", "wait", "end"),
            workflow_id=workflow_id,
        )

    async def test_cancel_waiting_execution(self, engine, save_workflow, execution_store):
        workflow = await save_workflow(self.waiting_workflow())
        execution = await start(engine, workflow)

        assert await engine.cancel(execution.id, "operator request")

        stored = await execution_store.get(execution.id)
        assert stored.status == ExecutionStatus.ERROR
        assert stored.error == "Execution cancelled: operator request"
        assert engine.timeout_scheduler.deadline(execution.id) is None
        assert not await engine.cancel(execution.id, "again")

    async def test_cancel_running_execution(self, engine, save_workflow, execution_store, services):
        sandbox = BlockingSandbox()
        services.sandbox = sandbox
        workflow = await save_workflow(
            make_workflow(
                [trigger(), node("code", "CODE", code="result = 1"), node("end", "END")],
                chain("trigger", "code", "end"),
            )
        )

        task = asyncio.create_task(start(engine, workflow))
        await asyncio.wait_for(sandbox.started.wait(), timeout=1)
        [running] = await execution_store.list("tenant-1")
        assert running.status == ExecutionStatus.RUNNING

        assert await engine.cancel(running.id, "stop")
        execution = await asyncio.wait_for(task, timeout=1)

        assert execution.status == ExecutionStatus.ERROR
        assert execution.error == "Execution cancelled: stop"

    async def test_cancel_workflow_cancels_all_active(self, engine, save_workflow, execution_store):
        workflow = await save_workflow(self.waiting_workflow())
        other = await save_workflow(self.waiting_workflow("wf-2"))
        first = await engine.start(workflow, workflow.get_node("trigger"), message("a", contact_id="c1"))
        second = await engine.start(workflow, workflow.get_node("trigger"), message("b", contact_id="c2"))
        untouched = await engine.start(other, other.get_node("trigger"), message("c", contact_id="c3"))

        assert await engine.cancel_workflow("wf-1", "Workflow deactivated") == 2

        assert (await execution_store.get(first.id)).status == ExecutionStatus.ERROR
        assert (await execution_store.get(second.id)).status == ExecutionStatus.ERROR
        assert (await execution_store.get(untouched.id)).status == ExecutionStatus.WAITING

    async def test_cancel_while_waiting_state_is_saved(
        self, workflow_store, publisher, services, settings, clock, save_workflow
    ):
        store = GatedSaveStore()
        engine = ExecutionEngine(store, workflow_store, publisher, services=services, settings=settings, clock=clock)
        workflow = await save_workflow(self.waiting_workflow())

        task = asyncio.create_task(start(engine, workflow))
        await asyncio.wait_for(store.reached.wait(), timeout=1)
        [running] = await store.list("tenant-1")

        assert await engine.cancel(running.id, "Workflow deactivated")
        store.release.set()
        execution = await asyncio.wait_for(task, timeout=1)

        stored = await store.get(running.id)
        assert execution.status == ExecutionStatus.ERROR
        assert stored.status == ExecutionStatus.ERROR
        assert stored.error == "Execution cancelled: Workflow deactivated"
        assert engine.timeout_scheduler.deadline(running.id) is None
        assert not await engine.resume(running.id, message("late reply"))


class TestRestore:
    """Tests for rebuilding deadlines after a restart."""

    async def test_restore_timeouts_from_store(
        self, engine, save_workflow, execution_store, workflow_store, services, settings, clock
    ):
        workflow = await save_workflow(
            make_workflow(
                [trigger(), node("wait", "WAIT_REPLY", saveAs="a", timeoutSeconds=30)],
                chain("trigger", "wait"),
            )
        )
        execution = await start(engine, workflow)
        restarted = ExecutionEngine(
            execution_store,
            workflow_store,
            EventPublisher(),
            services=services,
            settings=settings,
            clock=clock,
        )

        assert await restarted.restore_timeouts() == 1
        assert restarted.timeout_scheduler.deadline(execution.id) == execution.expires_at

        clock.advance(30)
        assert await restarted.timeout_scheduler.tick() == 1
        await restarted.timeout_scheduler.join()
        assert (await execution_store.get(execution.id)).status == ExecutionStatus.EXPIRED
