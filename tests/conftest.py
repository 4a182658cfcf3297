"""Shared fixtures: a scripted chat model and an in-memory pull request host."""

from typing import Any, Optional

import pytest
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

from src.config import settings
from src.services.reviewer.schemas import (
    ChangedFile,
    ExistingReviewComment,
    ReviewAction,
    ReviewComment,
)

BOT = "review-bot"


class ScriptedChatModel(BaseChatModel):
    """Chat model that answers from a queue and records every prompt it saw."""

    responses: list[AIMessage] = Field(default_factory=list)
    calls: list[list[BaseMessage]] = Field(default_factory=list)
    bound_tools: list[list[Any]] = Field(default_factory=list)
    usage: dict = Field(default_factory=lambda: {"prompt_tokens": 10, "completion_tokens": 5})

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        self.calls.append(list(messages))
        message = self.responses.pop(0) if self.responses else AIMessage(content="ok")
        return ChatResult(
            generations=[ChatGeneration(message=message)],
            llm_output={"token_usage": dict(self.usage), "model_name": "scripted"},
        )

    def bind_tools(self, tools, **kwargs):
        self.bound_tools.append(list(tools))
        return self


def tool_call(name: str, args: dict, call_id: str = "call_1") -> AIMessage:
    return AIMessage(content="", tool_calls=[{"name": name, "args": args, "id": call_id}])


def comment_call(comment: str, position: int, skip: bool = False) -> AIMessage:
    return tool_call("ReviewCommentResponse", {"comment": comment, "position": position, "skip": skip})


def summary_call(summary: str, action: str = "COMMENT") -> AIMessage:
    return tool_call("ReviewSummaryResponse", {"review_summary": summary, "review_action": action})


class FakeHost:
    """In-memory PullRequestHost recording everything posted to it."""

    def __init__(
        self,
        files: Optional[list[ChangedFile]] = None,
        contents: Optional[dict[str, str]] = None,
        review_comments: Optional[list[ExistingReviewComment]] = None,
        bot_login: str = BOT,
        reply_pending: bool = False,
        review_needed: bool = True,
        context: str = "Repository: acme/widgets\nTitle: Add widget",
    ) -> None:
        self.files = files or []
        self.contents = contents or {}
        self.review_comments = review_comments or []
        self.bot_login = bot_login
        self.reply_pending = reply_pending
        self.review_needed = review_needed
        self.context = context

        self.calls: list[str] = []
        self.replies: list[tuple[int, str]] = []
        self.reviews: list[tuple[str, list[ReviewComment], ReviewAction]] = []
        self.fail_list_files_once = False

    def get_pull_request_context(self) -> str:
        self.calls.append("get_pull_request_context")
        return self.context

    def get_list_files(self) -> list[ChangedFile]:
        self.calls.append("get_list_files")
        if self.fail_list_files_once:
            self.fail_list_files_once = False
            raise RuntimeError("GitHub is down")
        return self.files

    def get_file_content(self, filename: str) -> str:
        self.calls.append(f"get_file_content:{filename}")
        return self.contents.get(filename, "")

    def list_directory(self, path: str = "") -> list[dict]:
        self.calls.append(f"list_directory:{path}")
        return [{"path": name, "type": "file"} for name in self.contents]

    def search_code(self, query: str) -> list[dict]:
        self.calls.append(f"search_code:{query}")
        return []

    def get_list_review_comments(self) -> list[ExistingReviewComment]:
        self.calls.append("get_list_review_comments")
        return self.review_comments

    def get_authenticated_user_login(self) -> str:
        return self.bot_login

    def reply_to_review_comment(self, comment_id: int, body: str) -> None:
        self.replies.append((comment_id, body))

    def submit_review(self, summary: str, comments: list[ReviewComment], action: ReviewAction) -> None:
        self.reviews.append((summary, list(comments), action))

    def is_need_to_review_pull_request(self) -> bool:
        self.calls.append("is_need_to_review_pull_request")
        return self.review_needed

    def is_need_to_reply_review_comments(self) -> bool:
        self.calls.append("is_need_to_reply_review_comments")
        return self.reply_pending


def review_comment(
    comment_id: int,
    user: str,
    body: str,
    in_reply_to_id: Optional[int] = None,
) -> ExistingReviewComment:
    return ExistingReviewComment(
        id=comment_id,
        user_login=user,
        diff_hunk="@@ -1,2 +1,2 @@\n-old\n+new",
        body=body,
        in_reply_to_id=in_reply_to_id,
    )


@pytest.fixture(autouse=True)
def no_rate_limit_delays(monkeypatch):
    """Run the workflow without the host rate-limit sleeps."""
    monkeypatch.setattr(settings, "file_review_delay_seconds", 0.0)
    monkeypatch.setattr(settings, "reply_delay_seconds", 0.0)


@pytest.fixture
def llm() -> ScriptedChatModel:
    return ScriptedChatModel()
