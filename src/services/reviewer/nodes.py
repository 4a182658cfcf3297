"""Workflow stages of the review agent.

Each stage reads the accumulated state, talks to the model and the pull request
host, and returns an append-only update.
"""

import asyncio
from typing import Callable, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from pydantic import ValidationError

from src.core.costs import log_stage_estimate
from src.core.logging import get_logger
from src.core.prompts import (
    render_input_understanding_prompt,
    render_knowledge_updates_prompt,
    render_reply_comment_prompt,
    render_review_comment_prompt,
    render_review_summary_prompt,
)
from src.services.reviewer.schemas import (
    POSITION_DESCRIPTION,
    ChangedFile,
    FileReviewOutcome,
    PullRequestHost,
    ReviewComment,
    ReviewCommentResponse,
    ReviewSummaryResponse,
    Skip,
    SubmitReview,
    SummaryOutcome,
)
from src.services.reviewer.state import ReviewState
from src.services.reviewer.threads import find_pending_threads, format_conversation

logger = get_logger("reviewer.nodes")

REVIEW_COMMENT_TOOL = ReviewCommentResponse.__name__
REVIEW_SUMMARY_TOOL = ReviewSummaryResponse.__name__


def message_text(message: BaseMessage) -> str:
    """Plain text of a message whose content may be a list of parts."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def _tool_call_args(response: BaseMessage, tool_name: str) -> Optional[dict]:
    tool_calls = getattr(response, "tool_calls", None) or []
    for tool_call in tool_calls:
        if tool_call.get("name") == tool_name:
            return tool_call.get("args") or {}
    return None


def decide_file_review(response: BaseMessage, filename: str) -> FileReviewOutcome:
    """Turn a per-file model response into a comment or a skip."""
    args = _tool_call_args(response, REVIEW_COMMENT_TOOL)
    if args is None:
        return Skip(reason="no structured response")

    try:
        decision = ReviewCommentResponse.model_validate(args)
    except ValidationError as e:
        logger.warning(f"Malformed review response for {filename}: {e}")
        return Skip(reason="malformed structured response")

    if decision.skip:
        return Skip(reason="model chose to skip")

    return ReviewComment(comment=decision.comment, position=decision.position, path=filename)


def decide_summary(response: BaseMessage) -> SummaryOutcome:
    """Turn the summary model response into a submission or a skip."""
    args = _tool_call_args(response, REVIEW_SUMMARY_TOOL)
    if args is None:
        return Skip(reason="no structured response")

    try:
        summary = ReviewSummaryResponse.model_validate(args)
    except ValidationError as e:
        logger.warning(f"Malformed review summary response: {e}")
        return Skip(reason="malformed structured response")

    return SubmitReview(summary=summary.review_summary, action=summary.review_action)


class ReviewNodes:
    """The review workflow's stateful stages, bound to one model and one pull request."""

    def __init__(
        self,
        llm: BaseChatModel,
        host: PullRequestHost,
        codebase_overview: str,
        knowledge_tools: Optional[list[Callable]] = None,
        file_content_limit: int = 10000,
        patch_limit: int = 10000,
        file_review_delay: float = 1.0,
        reply_delay: float = 2.0,
    ) -> None:
        self.llm = llm
        self.host = host
        self.codebase_overview = codebase_overview
        self.knowledge_tools = knowledge_tools or []
        self.file_content_limit = file_content_limit
        self.patch_limit = patch_limit
        self.file_review_delay = file_review_delay
        self.reply_delay = reply_delay

    async def input_understanding(self, state: ReviewState) -> dict:
        """Ask the model to digest the repository and pull request context."""
        logger.info("[LLM] - Understanding the input...")

        pull_request_context = self.host.get_pull_request_context()
        prompt = render_input_understanding_prompt(self.codebase_overview, pull_request_context)
        input_cost = log_stage_estimate("Input Understanding", "input", prompt)

        response = await self.llm.ainvoke([HumanMessage(content=prompt)])

        output_cost = log_stage_estimate("Input Understanding", "output", message_text(response))
        logger.info(f"[LLM Cost] Input Understanding - Total Cost: ${input_cost + output_cost:.3f}")

        return {"messages": [response]}

    async def knowledge_updates(self, state: ReviewState) -> dict:
        """Let the model request knowledge tool calls based on what it understood."""
        logger.info("[LLM] - Updating knowledges...")

        prompt = render_knowledge_updates_prompt()
        history = "".join(message_text(m) for m in state["messages"])
        input_cost = log_stage_estimate("Knowledge Updates", "input", history + prompt)

        model = self.llm.bind_tools(self.knowledge_tools) if self.knowledge_tools else self.llm
        response = await model.ainvoke([*state["messages"], HumanMessage(content=prompt)])

        output_cost = log_stage_estimate("Knowledge Updates", "output", message_text(response))
        logger.info(f"[LLM Cost] Knowledge Updates - Total Cost: ${input_cost + output_cost:.3f}")

        if isinstance(response, AIMessage) and response.tool_calls:
            logger.info(f"Agent calling tools: {[t['name'] for t in response.tool_calls]}")

        return {"messages": [response]}

    def _file_content(self, changed_file: ChangedFile) -> str:
        if changed_file.status == "removed":
            return ""
        return self.host.get_file_content(changed_file.filename)

    async def review_comments(self, state: ReviewState) -> dict:
        """Review each changed file in turn, collecting at most one comment per file."""
        logger.info("[LLM] - Reviewing code changes...")

        model = self.llm.bind_tools([ReviewCommentResponse])
        files = self.host.get_list_files()
        comments: list[ReviewComment] = []

        for index, changed_file in enumerate(files, start=1):
            logger.info(f"[LLM] - Reviewing file {index}/{len(files)}: {changed_file.filename} ...")

            file_content = self._file_content(changed_file)[: self.file_content_limit]
            patch = (changed_file.patch or "")[: self.patch_limit]

            prompt = render_review_comment_prompt(
                tool_name=REVIEW_COMMENT_TOOL,
                position_description=POSITION_DESCRIPTION,
                filename=changed_file.filename,
                previous_filename=changed_file.previous_filename,
                file_content=file_content,
                patch=patch,
            )
            response = await model.ainvoke([*state["messages"], HumanMessage(content=prompt)])

            outcome = decide_file_review(response, changed_file.filename)
            if isinstance(outcome, Skip):
                logger.info(f"Skipping {changed_file.filename}: {outcome.reason}")
            else:
                logger.info(f"Comment on {outcome.path} at position {outcome.position}")
                comments.append(outcome)

            await asyncio.sleep(self.file_review_delay)

        logger.info(f"Collected {len(comments)} review comments from {len(files)} files")
        return {"comments": comments}

    async def review_summary(self, state: ReviewState) -> dict:
        """Summarize the collected comments and submit the review."""
        logger.info("[LLM] - Submitting review...")

        model = self.llm.bind_tools([ReviewSummaryResponse])
        prompt = render_review_summary_prompt(REVIEW_SUMMARY_TOOL, state["comments"])
        response = await model.ainvoke([*state["messages"], HumanMessage(content=prompt)])

        outcome = decide_summary(response)
        if isinstance(outcome, Skip):
            # TODO: surface this in ReviewResult once callers can act on a missing review
            logger.warning(f"No review submitted: {outcome.reason}")
        else:
            self.host.submit_review(outcome.summary, state["comments"], outcome.action)
            logger.info(f"Review submitted: {outcome.action.value} with {len(state['comments'])} comments")

        return {"messages": []}

    async def reply_review_comments(self, state: ReviewState) -> dict:
        """Answer every bot thread whose latest reply is from a human."""
        logger.info("[LLM] - Replying review comments...")

        bot_login = self.host.get_authenticated_user_login()
        review_comments = self.host.get_list_review_comments()
        pending = find_pending_threads(review_comments, bot_login)

        logger.info(f"{len(pending)} review threads waiting for a reply")

        for thread in pending:
            prompt = render_reply_comment_prompt(
                diff_hunk=thread.top_level.diff_hunk,
                conversation=format_conversation(thread, bot_login),
            )
            response = await self.llm.ainvoke([*state["messages"], HumanMessage(content=prompt)])

            reply = message_text(response).strip()
            if not reply:
                logger.warning(f"Empty reply for review comment {thread.top_level.id}, leaving thread unanswered")
                continue

            self.host.reply_to_review_comment(thread.top_level.id, reply)
            logger.info(f"Replied to review comment {thread.top_level.id}")

            await asyncio.sleep(self.reply_delay)

        return {"messages": []}
