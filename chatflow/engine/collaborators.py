"""Interfaces of the external collaborators the engine depends on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol

import httpx

from .types import ExecutionStatus, Workflow, WorkflowExecution

TagAction = Literal["add", "remove", "set", "clear"]


class ChannelAdapter(Protocol):
    """Outbound messaging channel (one logical session per phone/account)."""

    async def send(self, session_id: str, contact_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        ...


class TagService(Protocol):
    """Per-contact tag or label set."""

    async def mutate(
        self,
        tenant_id: str,
        contact_id: str,
        action: TagAction,
        values: list[str],
    ) -> list[str]:
        ...

    async def list(self, tenant_id: str, contact_id: str) -> list[str]:
        ...


class MediaResolver(Protocol):
    """Turns a media reference (URL or storage key) into bytes."""

    async def resolve(self, reference: str) -> bytes:
        ...


class BrowserPage(Protocol):
    async def evaluate(self, script: str) -> Any:
        ...

    async def content(self) -> str:
        ...

    async def title(self) -> str:
        ...

    async def screenshot(self) -> bytes:
        ...

    async def close(self) -> None:
        ...


class BrowserDriver(Protocol):
    """Headless browser used by HTTP_SCRAPE."""

    async def navigate(self, url: str, wait_spec: dict[str, Any]) -> BrowserPage:
        ...

    async def extract(
        self,
        page: BrowserPage,
        selector: str,
        extract_type: str,
        attribute: str | None = None,
    ) -> Any:
        ...


class CodeSandbox(Protocol):
    """Isolated runner for CODE node scripts."""

    async def run(self, script: str, input: dict[str, Any], limits: dict[str, Any]) -> Any:
        ...


class ExecutionStore(Protocol):
    """Persistence contract for executions."""

    async def create(self, execution: WorkflowExecution) -> WorkflowExecution:
        ...

    async def get(self, execution_id: str) -> WorkflowExecution | None:
        ...

    async def save(self, execution: WorkflowExecution) -> None:
        ...

    async def transition(
        self,
        execution_id: str,
        expected: ExecutionStatus,
        new_status: ExecutionStatus,
    ) -> bool:
        ...

    async def delete(self, execution_id: str) -> bool:
        ...

    async def list_waiting(self) -> list[WorkflowExecution]:
        ...

    async def find_active(
        self,
        tenant_id: str,
        session_id: str,
        contact_id: str,
    ) -> list[WorkflowExecution]:
        ...

    async def list_active_for_workflow(self, workflow_id: str) -> list[WorkflowExecution]:
        ...


class WorkflowStore(Protocol):
    """Read side of workflow persistence used by the engine."""

    async def get(self, workflow_id: str) -> Workflow | None:
        ...

    async def list_active(self, tenant_id: str | None = None) -> list[Workflow]:
        ...


@dataclass
class Collaborators:
    """Bundle of injectable collaborators handed to node executors."""

    channel: ChannelAdapter | None = None
    tags: TagService | None = None
    labels: TagService | None = None
    media: MediaResolver | None = None
    browser: BrowserDriver | None = None
    sandbox: CodeSandbox | None = None
    # Lets tests route HTTP_REQUEST through httpx.MockTransport
    http_transport: httpx.AsyncBaseTransport | None = None
