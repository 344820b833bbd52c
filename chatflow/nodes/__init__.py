"""Node executor implementations."""

from .base import BaseNode
from .triggers import TriggerManualNode, TriggerMessageNode, TriggerScheduleNode
from .messaging import SendButtonsNode, SendListNode, SendMediaNode, SendMessageNode
from .http_request import HttpRequestNode
from .http_scrape import HttpScrapeNode
from .code import CodeNode
from .edit_fields import EditFieldsNode
from .contact_tags import ManageLabelsNode, SetTagsNode
from .flow import ConditionNode, EndNode, SwitchNode, WaitNode, WaitReplyNode

ALL_NODES: list[type[BaseNode]] = [
    TriggerMessageNode,
    TriggerScheduleNode,
    TriggerManualNode,
    SendMessageNode,
    SendMediaNode,
    SendButtonsNode,
    SendListNode,
    HttpRequestNode,
    HttpScrapeNode,
    CodeNode,
    EditFieldsNode,
    ManageLabelsNode,
    SetTagsNode,
    ConditionNode,
    SwitchNode,
    WaitReplyNode,
    WaitNode,
    EndNode,
]

__all__ = [
    "ALL_NODES",
    "BaseNode",
    "TriggerMessageNode",
    "TriggerScheduleNode",
    "TriggerManualNode",
    "SendMessageNode",
    "SendMediaNode",
    "SendButtonsNode",
    "SendListNode",
    "HttpRequestNode",
    "HttpScrapeNode",
    "CodeNode",
    "EditFieldsNode",
    "ManageLabelsNode",
    "SetTagsNode",
    "ConditionNode",
    "SwitchNode",
    "WaitReplyNode",
    "WaitNode",
    "EndNode",
]
