"""Flow control nodes."""

from .condition import ConditionNode
from .switch import SwitchNode
from .wait import WaitNode, WaitReplyNode
from .end import EndNode

__all__ = [
    "ConditionNode",
    "SwitchNode",
    "WaitNode",
    "WaitReplyNode",
    "EndNode",
]
