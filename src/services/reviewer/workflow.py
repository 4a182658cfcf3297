"""Review workflow as an explicit state machine.

Nodes are an enum; edges are a transition table. Conditional transitions are
ordered rules evaluated top to bottom, the first rule whose condition holds
wins. Predicates are only called when their rule is reached.
"""

from enum import Enum
from typing import Callable, Mapping

from langgraph.graph import END

from src.core.logging import get_logger

logger = get_logger("reviewer.workflow")


class WorkflowNode(str, Enum):
    INPUT_UNDERSTANDING = "input_understanding_agent_node"
    KNOWLEDGE_UPDATES = "knowledge_updates_agent_node"
    KNOWLEDGE_TOOLS = "knowledge_base_tools"
    REPLY_REVIEW_COMMENTS = "reply_review_comments_agent_node"
    REVIEW_COMMENTS = "review_comments_agent_node"
    REVIEW_SUMMARY = "review_summary_agent_node"
    END = END


class RouteCondition(str, Enum):
    REPLY_PENDING = "reply_pending"
    REVIEW_NEEDED = "review_needed"
    OTHERWISE = "otherwise"


ENTRY_NODE = WorkflowNode.INPUT_UNDERSTANDING

STATIC_TRANSITIONS: dict[WorkflowNode, WorkflowNode] = {
    WorkflowNode.INPUT_UNDERSTANDING: WorkflowNode.KNOWLEDGE_UPDATES,
    WorkflowNode.KNOWLEDGE_UPDATES: WorkflowNode.KNOWLEDGE_TOOLS,
    WorkflowNode.REVIEW_COMMENTS: WorkflowNode.REVIEW_SUMMARY,
    WorkflowNode.REVIEW_SUMMARY: WorkflowNode.END,
}

# Reply-pending is not re-checked after replying: the replies just posted
# cannot create new pending threads.
CONDITIONAL_TRANSITIONS: dict[WorkflowNode, tuple[tuple[RouteCondition, WorkflowNode], ...]] = {
    WorkflowNode.KNOWLEDGE_TOOLS: (
        (RouteCondition.REPLY_PENDING, WorkflowNode.REPLY_REVIEW_COMMENTS),
        (RouteCondition.REVIEW_NEEDED, WorkflowNode.REVIEW_COMMENTS),
        (RouteCondition.OTHERWISE, WorkflowNode.END),
    ),
    WorkflowNode.REPLY_REVIEW_COMMENTS: (
        (RouteCondition.REVIEW_NEEDED, WorkflowNode.REVIEW_COMMENTS),
        (RouteCondition.OTHERWISE, WorkflowNode.END),
    ),
}

Predicates = Mapping[RouteCondition, Callable[[], bool]]


def next_node(node: WorkflowNode, predicates: Predicates) -> WorkflowNode:
    """Resolve the node that follows `node`."""
    if node in STATIC_TRANSITIONS:
        return STATIC_TRANSITIONS[node]

    for condition, target in CONDITIONAL_TRANSITIONS[node]:
        if condition is RouteCondition.OTHERWISE or predicates[condition]():
            logger.info(f"Routing {node.value} -> {target.value} ({condition.value})")
            return target

    raise ValueError(f"No transition out of {node.value}")


def conditional_targets(node: WorkflowNode) -> list[WorkflowNode]:
    return [target for _, target in CONDITIONAL_TRANSITIONS[node]]
