"""Pydantic schemas for reviewer service."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

POSITION_DESCRIPTION = (
    "The position in the diff / patch where you want to add a review comment. "
    "Note this value is not the same as the line number in the file. "
    'The position value equals the number of lines down from the first "@@" hunk header '
    "in the file you want to add a comment. "
    'The line just below the "@@" line is position 1, the next line is position 2, and so on. '
    "The position in the diff continues to increase through lines of whitespace and "
    "additional hunks until the beginning of a new file."
)


class ReviewComment(BaseModel):
    """One inline review comment anchored at a diff position."""

    model_config = ConfigDict(frozen=True)

    comment: str
    position: int
    path: str


class ReviewAction(str, Enum):
    APPROVE = "APPROVE"
    REQUEST_CHANGES = "REQUEST_CHANGES"
    COMMENT = "COMMENT"


class ReviewCommentResponse(BaseModel):
    """Always respond to the user using this tool."""

    comment: str = Field(default="", description="Your comment to specific file and position.")
    position: int = Field(default=0, description=POSITION_DESCRIPTION)
    skip: bool = Field(
        default=False,
        description="Set this parameter to true to skip reviewing this change.",
    )

    @model_validator(mode="after")
    def require_comment_unless_skipped(self) -> "ReviewCommentResponse":
        if self.skip:
            return self
        if not self.comment.strip():
            raise ValueError("comment is required unless skip is true")
        if self.position < 1:
            raise ValueError("position must be 1 or greater unless skip is true")
        return self


class ReviewSummaryResponse(BaseModel):
    """Always respond to the user using this tool."""

    review_summary: str = Field(description="Your PR Review summarization.")
    review_action: ReviewAction = Field(
        description=(
            "The review action you want to perform. "
            "The review actions include: APPROVE, REQUEST_CHANGES, or COMMENT."
        )
    )


@dataclass(frozen=True)
class Skip:
    """A stage decided not to act (explicit skip or malformed model response)."""

    reason: str


@dataclass(frozen=True)
class SubmitReview:
    summary: str
    action: ReviewAction


FileReviewOutcome = Union[Skip, ReviewComment]
SummaryOutcome = Union[Skip, SubmitReview]


class ChangedFile(BaseModel):
    """A file changed by the pull request."""

    filename: str
    previous_filename: Optional[str] = None
    status: Optional[str] = None
    patch: Optional[str] = None


class ExistingReviewComment(BaseModel):
    """A review comment already posted on the pull request."""

    id: int
    user_login: str
    diff_hunk: str = ""
    body: str = ""
    in_reply_to_id: Optional[int] = None


class PullRequestHost(Protocol):
    """Source-control operations the workflow needs for one pull request."""

    def get_pull_request_context(self) -> str: ...

    def get_list_files(self) -> list[ChangedFile]: ...

    def get_file_content(self, filename: str) -> str: ...

    def get_list_review_comments(self) -> list[ExistingReviewComment]: ...

    def get_authenticated_user_login(self) -> str: ...

    def reply_to_review_comment(self, comment_id: int, body: str) -> None: ...

    def submit_review(
        self, summary: str, comments: list[ReviewComment], action: ReviewAction
    ) -> None: ...

    def is_need_to_review_pull_request(self) -> bool: ...

    def is_need_to_reply_review_comments(self) -> bool: ...


class ReviewResult(BaseModel):
    """Result of a PR review run."""

    success: bool = True
    pr: str
    thread_id: str
    comments: int
    visited_nodes: list[str] = []
    input_tokens: int = 0
    output_tokens: int = 0
    total_cost: float = 0.0
    resumed: bool = False
