"""Agent state schema for the code reviewer."""

import operator
from typing import Annotated, TypedDict

from langchain_core.messages import AnyMessage, SystemMessage

from src.services.reviewer.schemas import ReviewComment

SYSTEM_PROMPT = (
    "You are an AI Assistant that help human to do code review. "
    "Please follow instructions given by Human."
)


class ReviewState(TypedDict):
    """State threaded through every node of the review workflow.

    Both channels are append-only: node updates are concatenated onto the end.
    """

    # Agent conversation
    messages: Annotated[list[AnyMessage], operator.add]

    # Accumulated results, written only by the review comments node
    comments: Annotated[list[ReviewComment], operator.add]


def initial_review_state() -> ReviewState:
    """State at the start of a run: the fixed system turn and no comments."""
    return {
        "messages": [SystemMessage(content=SYSTEM_PROMPT)],
        "comments": [],
    }
