"""LangGraph agent for code review."""

from typing import Callable, Optional

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.graph import StateGraph
from langgraph.prebuilt import ToolNode

from src.core.logging import get_logger
from src.services.reviewer.nodes import ReviewNodes
from src.services.reviewer.schemas import PullRequestHost
from src.services.reviewer.state import ReviewState
from src.services.reviewer.workflow import (
    CONDITIONAL_TRANSITIONS,
    ENTRY_NODE,
    STATIC_TRANSITIONS,
    RouteCondition,
    WorkflowNode,
    conditional_targets,
    next_node,
)

logger = get_logger("reviewer.graph")


def route_predicates(host: PullRequestHost) -> dict[RouteCondition, Callable[[], bool]]:
    """Routing predicates backed by the pull request host."""
    return {
        RouteCondition.REPLY_PENDING: host.is_need_to_reply_review_comments,
        RouteCondition.REVIEW_NEEDED: host.is_need_to_review_pull_request,
    }


def create_review_graph(
    nodes: ReviewNodes,
    host: PullRequestHost,
    checkpointer: Optional[BaseCheckpointSaver] = None,
):
    """Compile the review workflow into a LangGraph graph."""
    predicates = route_predicates(host)

    def router_for(node: WorkflowNode) -> Callable[[ReviewState], str]:
        def route(_state: ReviewState) -> str:
            return next_node(node, predicates).value

        route.__name__ = f"route_after_{node.name.lower()}"
        return route

    graph = StateGraph(ReviewState)

    # Add nodes
    graph.add_node(WorkflowNode.INPUT_UNDERSTANDING.value, nodes.input_understanding)
    graph.add_node(WorkflowNode.KNOWLEDGE_UPDATES.value, nodes.knowledge_updates)
    graph.add_node(WorkflowNode.KNOWLEDGE_TOOLS.value, ToolNode(tools=nodes.knowledge_tools))
    graph.add_node(WorkflowNode.REPLY_REVIEW_COMMENTS.value, nodes.reply_review_comments)
    graph.add_node(WorkflowNode.REVIEW_COMMENTS.value, nodes.review_comments)
    graph.add_node(WorkflowNode.REVIEW_SUMMARY.value, nodes.review_summary)

    # Set entry point
    graph.set_entry_point(ENTRY_NODE.value)

    # Add edges
    for source, target in STATIC_TRANSITIONS.items():
        graph.add_edge(source.value, target.value)

    for source in CONDITIONAL_TRANSITIONS:
        graph.add_conditional_edges(
            source.value,
            router_for(source),
            {target.value: target.value for target in conditional_targets(source)},
        )

    return graph.compile(checkpointer=checkpointer)
