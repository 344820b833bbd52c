"""Pydantic models for node configuration payloads (camelCase on the wire)."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class NodeConfig(BaseModel):
    """Base for node configs: camelCase aliases, unknown keys tolerated."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        # "{{variables.n}}" resolves to a typed value; text fields still accept it
        coerce_numbers_to_str=True,
    )


# --- Triggers ---


class TriggerMessageConfig(NodeConfig):
    pattern: str = ""
    match_type: Literal["exact", "contains", "regex"] = "contains"
    session_id: str | None = None


class TriggerScheduleConfig(NodeConfig):
    schedule_type: Literal["cron", "interval"] = "interval"
    cron_expression: str | None = None
    interval_minutes: float | None = Field(default=None, gt=0)
    timezone: str | None = None
    session_id: str | None = None

    @model_validator(mode="after")
    def _check_schedule(self) -> TriggerScheduleConfig:
        if self.schedule_type == "cron" and not self.cron_expression:
            raise ValueError("cronExpression is required for cron schedules")
        if self.schedule_type == "interval" and not self.interval_minutes:
            raise ValueError("intervalMinutes is required for interval schedules")
        return self


class TriggerManualConfig(NodeConfig):
    session_id: str | None = None


# --- Messaging ---


class SendMessageConfig(NodeConfig):
    message: str
    delay: int = Field(default=0, ge=0)


class SendMediaConfig(NodeConfig):
    media_type: Literal["image", "video", "audio", "document"]
    media_url: str
    caption: str | None = None
    file_name: str | None = None
    delay: int = Field(default=0, ge=0)


class ButtonOption(NodeConfig):
    id: str
    text: str


class SendButtonsConfig(NodeConfig):
    message: str
    buttons: list[ButtonOption] = Field(min_length=1)
    footer: str | None = None
    delay: int = Field(default=0, ge=0)


class ListRow(NodeConfig):
    id: str
    title: str
    description: str | None = None


class ListSection(NodeConfig):
    title: str
    rows: list[ListRow] = Field(min_length=1)


class SendListConfig(NodeConfig):
    message: str
    button_text: str
    sections: list[ListSection] = Field(min_length=1)
    title: str | None = None
    footer: str | None = None
    delay: int = Field(default=0, ge=0)


# --- Flow ---


class ConditionConfig(NodeConfig):
    expression: str = Field(min_length=1)


class SwitchRule(NodeConfig):
    value1: Any = None
    operator: Literal["==", "!=", ">", "<", ">=", "<=", "contains"] = "=="
    value2: Any = None
    output_key: str = Field(min_length=1)


class SwitchConfig(NodeConfig):
    rules: list[SwitchRule] = Field(default_factory=list)
    fallback_output: str | None = None


class WaitReplyConfig(NodeConfig):
    save_as: str = Field(min_length=1)
    timeout_seconds: float | None = Field(default=None, gt=0)
    on_timeout: Literal["END", "GOTO_NODE"] = "END"
    timeout_target_node_id: str | None = None

    @model_validator(mode="after")
    def _check_target(self) -> WaitReplyConfig:
        if self.on_timeout == "GOTO_NODE" and not self.timeout_target_node_id:
            raise ValueError("timeoutTargetNodeId is required when onTimeout is GOTO_NODE")
        return self


WAIT_UNIT_SECONDS = {"seconds": 1, "minutes": 60, "hours": 3600, "days": 86400}


class WaitConfig(NodeConfig):
    amount: float = Field(gt=0)
    unit: Literal["seconds", "minutes", "hours", "days"] = "seconds"
    resume_on_message: bool = False
    save_as: str | None = None

    @property
    def total_seconds(self) -> float:
        return self.amount * WAIT_UNIT_SECONDS[self.unit]


class EndConfig(NodeConfig):
    output_variables: list[str] | None = None


# --- Integrations ---


def _pairs_to_dict(value: Any) -> Any:
    """Accept either a mapping or a list of {key, value} pairs."""
    if isinstance(value, list):
        result: dict[str, Any] = {}
        for item in value:
            if isinstance(item, dict) and item.get("key"):
                result[str(item["key"])] = item.get("value")
        return result
    return value


class HttpRequestConfig(NodeConfig):
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"] = "GET"
    url: str = Field(min_length=1)
    headers: dict[str, Any] = Field(default_factory=dict)
    query_params: dict[str, Any] = Field(default_factory=dict)
    body: Any = None
    timeout: int | None = Field(default=None, gt=0)
    follow_redirects: bool = True
    ignore_ssl: bool = False
    response_type: Literal["json", "text"] = "json"
    save_response_as: str = "httpResponse"

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("headers", "query_params", mode="before")
    @classmethod
    def _normalize_pairs(cls, value: Any) -> Any:
        return _pairs_to_dict(value) if value is not None else {}


class Viewport(NodeConfig):
    width: int = Field(default=1280, gt=0)
    height: int = Field(default=720, gt=0)


class HttpScrapeConfig(NodeConfig):
    url: str = Field(min_length=1)
    wait_for: Literal["networkidle0", "networkidle2", "load", "domcontentloaded", "selector"] = "networkidle2"
    wait_selector: str | None = None
    wait_timeout: int | None = Field(default=None, gt=0)
    execute_script: str | None = None
    extract_selector: str | None = None
    extract_type: Literal["text", "html", "attribute"] = "text"
    extract_attribute: str | None = None
    screenshot: bool = False
    headers: dict[str, Any] = Field(default_factory=dict)
    viewport: Viewport | None = None
    timeout: int | None = Field(default=None, gt=0)
    save_response_as: str = "scrapeResponse"

    @field_validator("headers", mode="before")
    @classmethod
    def _normalize_headers(cls, value: Any) -> Any:
        return _pairs_to_dict(value) if value is not None else {}

    @model_validator(mode="after")
    def _check_wait(self) -> HttpScrapeConfig:
        if self.wait_for == "selector" and not self.wait_selector:
            raise ValueError("waitSelector is required when waitFor is selector")
        if self.extract_type == "attribute" and self.extract_selector and not self.extract_attribute:
            raise ValueError("extractAttribute is required when extractType is attribute")
        return self


class CodeConfig(NodeConfig):
    code: str = Field(min_length=1)
    mode: Literal["runOnceForAllItems", "runOnceForEachItem"] = "runOnceForAllItems"
    items_path: str = "variables.items"
    save_result_as: str | None = None


class FieldAssignment(NodeConfig):
    name: str = Field(min_length=1)
    value: Any = None
    type: Literal["string", "number", "boolean", "json", "array", "auto"] = "auto"


class EditFieldsConfig(NodeConfig):
    mode: Literal["manual", "json"] = "manual"
    fields: list[FieldAssignment] = Field(default_factory=list)
    json_data: Any = None
    include_other_fields: bool = True
    save_as: str = "editFields"


class TagsConfig(NodeConfig):
    action: Literal["add", "remove", "set", "clear", "list"] = "add"
    values: list[str] = Field(default_factory=list)
    save_as: str | None = None

    @field_validator("values", mode="before")
    @classmethod
    def _split_values(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value

    @model_validator(mode="after")
    def _check_values(self) -> TagsConfig:
        if self.action in ("add", "remove") and not self.values:
            raise ValueError(f"values are required for action '{self.action}'")
        return self
