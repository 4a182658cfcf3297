"""GitHub service."""

from src.services.github.service import (
    GitHubPullRequestHost,
    handle_pull_request_event,
    run_review,
)

__all__ = [
    "GitHubPullRequestHost",
    "handle_pull_request_event",
    "run_review",
]
