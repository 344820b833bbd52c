"""Tests for inbound message routing."""

import asyncio

import pytest

from chatflow.engine.types import ExecutionStatus, InboundEvent
from chatflow.services.conversation_service import ConversationService
from tests.helpers import SESSION, TENANT, BlockingSandbox, chain, make_workflow, message, node

pytestmark = pytest.mark.unit


@pytest.fixture
def conversations(engine, execution_store, workflow_store) -> ConversationService:
    return ConversationService(engine, execution_store, workflow_store)


def survey(workflow_id="wf-survey", pattern="survey"):
    return make_workflow(
        [
            node("t", "TRIGGER_MESSAGE", pattern=pattern),
            node("q", "SEND_MESSAGE", message="Rate us 1-5"),
            node("wait", "WAIT_REPLY", saveAs="score", timeoutSeconds=60),
            node("thanks", "SEND_MESSAGE", message="You gave {{variables.score}}"),
        ],
        chain("t", "q", "wait", "thanks"),
        workflow_id=workflow_id,
    )


class TestHandleMessage:
    """Tests for resume-or-start routing."""

    async def test_starts_matching_workflow_then_resumes_it(self, conversations, save_workflow, channel):
        await save_workflow(survey())

        first = await conversations.handle_message(message("I want the survey"))
        second = await conversations.handle_message(message("5"))

        assert first.action == "started"
        assert second.action == "resumed"
        assert second.execution_ids == first.execution_ids
        assert channel.texts == ["Rate us 1-5", "You gave 5"]

    async def test_reply_never_starts_a_second_execution(self, conversations, save_workflow, execution_store):
        """While a contact is WAITING, a reply that also matches a trigger only resumes."""
        await save_workflow(survey())

        await conversations.handle_message(message("survey"))
        result = await conversations.handle_message(message("survey again"))

        assert result.action == "resumed"
        assert len(await execution_store.list(TENANT)) == 1

    async def test_no_match_is_ignored(self, conversations, save_workflow):
        await save_workflow(survey())

        result = await conversations.handle_message(message("hello"))

        assert result.action == "ignored"
        assert result.execution_ids == []

    async def test_each_matching_workflow_starts(self, conversations, save_workflow):
        await save_workflow(survey("wf-a", "promo"))
        await save_workflow(survey("wf-b", "promo code"))

        result = await conversations.handle_message(message("promo code please"))

        assert result.action == "started"
        assert len(result.execution_ids) == 2

    async def test_contacts_are_independent(self, conversations, save_workflow, channel):
        await save_workflow(survey())

        await conversations.handle_message(message("survey", contact_id="alice"))
        result = await conversations.handle_message(message("survey", contact_id="bob"))

        assert result.action == "started"
        assert [contact for _, contact, _ in channel.sent] == ["alice", "bob"]

    async def test_message_during_running_execution_is_ignored(self, conversations, save_workflow, services):
        sandbox = BlockingSandbox()
        services.sandbox = sandbox
        await save_workflow(
            make_workflow(
                [node("t", "TRIGGER_MESSAGE", pattern="go"), node("code", "CODE", code="result = 1")],
                chain("t", "code"),
            )
        )

        task = asyncio.create_task(conversations.handle_message(message("go")))
        await asyncio.wait_for(sandbox.started.wait(), timeout=1)

        result = await conversations.handle_message(message("go"))

        assert result.action == "ignored"
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_expired_execution_lets_new_trigger_start(self, conversations, save_workflow, engine, clock):
        await save_workflow(survey())
        first = await conversations.handle_message(message("survey"))
        clock.advance(60)
        await engine.expire(first.execution_ids[0])

        result = await conversations.handle_message(message("survey"))

        assert result.action == "started"
        assert result.execution_ids != first.execution_ids


class TestHandleSignal:
    """Tests for schedule and manual signals."""

    async def test_manual_signal_starts_target_workflow(self, conversations, save_workflow, execution_store):
        await save_workflow(
            make_workflow(
                [node("m", "TRIGGER_MANUAL"), node("end", "END")],
                chain("m", "end"),
                workflow_id="wf-manual",
            )
        )
        event = InboundEvent(
            kind="manual",
            tenant_id=TENANT,
            session_id=SESSION,
            contact_id="manual",
            workflow_id="wf-manual",
        )

        result = await conversations.handle_signal(event)

        assert result.action == "started"
        execution = await execution_store.get(result.execution_ids[0])
        assert execution.status == ExecutionStatus.COMPLETED
