"""Workflow execution engine."""

from .execution_engine import ExecutionEngine
from .event_publisher import EventPublisher
from .expression_engine import ExpressionEngine, expression_engine
from .node_registry import node_registry, register_all_nodes
from .timeout_scheduler import TimeoutScheduler
from .trigger_matcher import TriggerMatcher, trigger_matcher

__all__ = [
    "ExecutionEngine",
    "EventPublisher",
    "ExpressionEngine",
    "expression_engine",
    "node_registry",
    "register_all_nodes",
    "TimeoutScheduler",
    "TriggerMatcher",
    "trigger_matcher",
]
