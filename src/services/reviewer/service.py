"""Reviewer service - orchestration layer."""

from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import MemorySaver

from src.config import settings
from src.core.costs import CostTracker
from src.core.llm import get_chat_llm
from src.core.logging import get_logger
from src.services.reviewer.graph import create_review_graph
from src.services.reviewer.nodes import ReviewNodes
from src.services.reviewer.schemas import PullRequestHost, ReviewResult
from src.services.reviewer.state import initial_review_state
from src.services.reviewer.tools import create_knowledge_tools

logger = get_logger("reviewer.service")

# Shared across runs in this process so an interrupted run can be resumed by thread id
_checkpointer = MemorySaver()


def _result(
    pr: str,
    thread_id: str,
    values: dict,
    visited_nodes: list[str],
    cost_tracker: CostTracker,
    resumed: bool,
) -> ReviewResult:
    return ReviewResult(
        pr=pr,
        thread_id=thread_id,
        comments=len(values.get("comments", [])),
        visited_nodes=visited_nodes,
        input_tokens=cost_tracker.input_tokens,
        output_tokens=cost_tracker.output_tokens,
        total_cost=cost_tracker.total_cost,
        resumed=resumed,
    )


async def review_pull_request(
    owner: str,
    repo: str,
    pr_number: int,
    *,
    host: Optional[PullRequestHost] = None,
    llm: Optional[BaseChatModel] = None,
    checkpointer: Optional[BaseCheckpointSaver] = None,
    thread_id: Optional[str] = None,
    cost_tracker: Optional[CostTracker] = None,
) -> ReviewResult:
    """Run the review workflow for one pull request.

    The model is selected before anything else so configuration errors abort
    the run before any model or host call. Re-invoking with the thread id of an
    interrupted run resumes it from its last checkpoint; a thread that already
    reached the end is not run again.
    """
    pr = f"{owner}/{repo}#{pr_number}"
    thread_id = thread_id or settings.review_thread_id or pr
    cost_tracker = cost_tracker if cost_tracker is not None else CostTracker()

    if llm is None:
        llm = get_chat_llm(cost_tracker=cost_tracker)

    if host is None:
        from src.services.github.service import GitHubPullRequestHost

        host = GitHubPullRequestHost(owner, repo, pr_number)

    nodes = ReviewNodes(
        llm=llm,
        host=host,
        codebase_overview=settings.codebase_high_overview_description,
        knowledge_tools=create_knowledge_tools(host),
        file_content_limit=settings.file_content_limit,
        patch_limit=settings.patch_limit,
        file_review_delay=settings.file_review_delay_seconds,
        reply_delay=settings.reply_delay_seconds,
    )
    graph = create_review_graph(
        nodes,
        host,
        checkpointer=checkpointer if checkpointer is not None else _checkpointer,
    )
    config = {"configurable": {"thread_id": thread_id}}

    snapshot = await graph.aget_state(config)
    if snapshot.values and not snapshot.next:
        logger.info(f"Run {thread_id} already completed, nothing to do")
        return _result(pr, thread_id, snapshot.values, [], cost_tracker, resumed=True)

    resumed = bool(snapshot.next)
    if resumed:
        logger.info(f"Resuming run {thread_id} at {list(snapshot.next)}")
        graph_input = None
    else:
        logger.info(f"Starting review: {pr} (thread {thread_id})")
        graph_input = initial_review_state()

    visited_nodes: list[str] = []
    async for update in graph.astream(graph_input, config, stream_mode="updates"):
        for node_name in update:
            logger.info(f"Completed node: {node_name}")
            visited_nodes.append(node_name)

    final = await graph.aget_state(config)
    cost_tracker.log_summary()

    return _result(pr, thread_id, final.values, visited_nodes, cost_tracker, resumed)
