"""GitHub service - business logic layer."""

from functools import cached_property
from typing import Optional
from uuid import uuid4

from fastapi import BackgroundTasks
from github.PullRequest import PullRequest

from src.core.logging import get_logger
from src.services.github.client import (
    create_review,
    create_review_comment_reply,
    fetch_authenticated_login,
    fetch_directory_contents,
    fetch_file_contents,
    fetch_pr_files,
    fetch_pull_request,
    fetch_review_authors,
    fetch_review_comments,
    search_code_in_repo,
)
from src.services.reviewer.patch_parser import filter_comments_by_valid_positions
from src.services.reviewer.schemas import (
    ChangedFile,
    ExistingReviewComment,
    ReviewAction,
    ReviewComment,
)
from src.services.reviewer.threads import find_pending_threads

logger = get_logger("github.service")

README_TEXT_LIMIT = 5000
COMMIT_MESSAGES_LIMIT = 50

REVIEWED_ACTIONS = ("opened", "synchronize", "reopened", "ready_for_review")
REPLY_ACTIONS = ("created",)


class GitHubPullRequestHost:
    """Pull request host backed by the GitHub REST API."""

    def __init__(self, owner: str, repo: str, pr_number: int) -> None:
        self.owner = owner
        self.repo = repo
        self.pr_number = pr_number
        self._files: Optional[list[ChangedFile]] = None

    def __repr__(self) -> str:
        return f"GitHubPullRequestHost({self.owner}/{self.repo}#{self.pr_number})"

    @cached_property
    def pull_request(self) -> PullRequest:
        logger.info(f"Fetching PR: {self.owner}/{self.repo}#{self.pr_number}")
        return fetch_pull_request(self.owner, self.repo, self.pr_number)

    @property
    def head_sha(self) -> str:
        return self.pull_request.head.sha

    def get_pull_request_context(self) -> str:
        """Repository and pull request information as prompt text."""
        pr = self.pull_request
        repository = pr.base.repo

        try:
            readme = repository.get_readme(ref=self.head_sha).decoded_content.decode("utf-8", errors="replace")
        except Exception as e:
            logger.warning(f"No README available: {e}")
            readme = ""

        root_listing = "\n".join(
            f"{'dir ' if item['type'] == 'dir' else 'file'} {item['path']}"
            for item in self.list_directory("")
        )
        commits = [c.commit.message.splitlines()[0] for c in pr.get_commits()[:COMMIT_MESSAGES_LIMIT]]

        return "\n".join([
            f"Repository: {repository.full_name}",
            f"Repository Description: {repository.description or ''}",
            f"Primary Language: {repository.language or ''}",
            "## README",
            readme[:README_TEXT_LIMIT],
            "## Folder Structure (root)",
            root_listing,
            "## Pull Request",
            f"Title: {pr.title}",
            f"Author: {pr.user.login}",
            f"Base Branch: {pr.base.ref}",
            f"Head Branch: {pr.head.ref}",
            "Description:",
            pr.body or "No description provided",
            "## Commits",
            "\n".join(f"- {message}" for message in commits),
        ])

    def get_list_files(self) -> list[ChangedFile]:
        if self._files is None:
            self._files = [ChangedFile(**f) for f in fetch_pr_files(self.pull_request)]
            logger.info(f"Found {len(self._files)} files in PR")
        return self._files

    def get_file_content(self, filename: str) -> str:
        logger.info(f"Fetching file: {self.owner}/{self.repo}/{filename}@{self.head_sha}")
        return fetch_file_contents(self.owner, self.repo, filename, self.head_sha)

    def list_directory(self, path: str = "") -> list[dict]:
        logger.info(f"Listing directory: {self.owner}/{self.repo}/{path}")
        return fetch_directory_contents(self.owner, self.repo, path, self.head_sha)

    def search_code(self, query: str) -> list[dict]:
        logger.info(f"Searching code in {self.owner}/{self.repo}: {query}")
        return search_code_in_repo(self.owner, self.repo, query)

    def get_list_review_comments(self) -> list[ExistingReviewComment]:
        return [ExistingReviewComment(**c) for c in fetch_review_comments(self.pull_request)]

    def get_authenticated_user_login(self) -> str:
        return fetch_authenticated_login()

    def reply_to_review_comment(self, comment_id: int, body: str) -> None:
        create_review_comment_reply(self.pull_request, comment_id, body)

    def submit_review(
        self,
        summary: str,
        comments: list[ReviewComment],
        action: ReviewAction,
    ) -> None:
        """Submit a review, dropping comments whose position is outside their file's patch."""
        patches = {f.filename: f.patch or "" for f in self.get_list_files()}
        valid, invalid = filter_comments_by_valid_positions(comments, patches)

        for comment in invalid:
            logger.warning(
                f"Dropping comment on {comment.path}: position {comment.position} is outside the patch"
            )

        create_review(
            self.pull_request,
            body=summary,
            comments=[{"path": c.path, "position": c.position, "body": c.comment} for c in valid],
            event=action.value,
        )
        logger.info(f"Submitted review with {len(valid)} comments ({len(invalid)} dropped)")

    def is_need_to_review_pull_request(self) -> bool:
        """True until the bot has submitted a review on this PR."""
        bot_login = self.get_authenticated_user_login()
        needed = bot_login not in fetch_review_authors(self.pull_request)
        logger.info(f"Review needed: {needed}")
        return needed

    def is_need_to_reply_review_comments(self) -> bool:
        """True when some bot thread ends with a reply from someone else."""
        pending = find_pending_threads(
            self.get_list_review_comments(),
            self.get_authenticated_user_login(),
        )
        logger.info(f"Review threads waiting for a reply: {len(pending)}")
        return bool(pending)


def parse_pull_request_event(event: str, payload: dict) -> Optional[dict]:
    """Extract owner/repo/number from a webhook payload, or None if the event is not handled."""
    action = payload.get("action")
    pr = payload.get("pull_request", {})
    repo = payload.get("repository", {})

    if event == "pull_request" and action not in REVIEWED_ACTIONS:
        return None
    if event == "pull_request_review_comment" and action not in REPLY_ACTIONS:
        return None
    if event not in ("pull_request", "pull_request_review_comment"):
        return None

    return {
        "owner": repo.get("owner", {}).get("login"),
        "repo": repo.get("name"),
        "pr_number": pr.get("number"),
        "action": action,
    }


async def handle_pull_request_event(
    event: str,
    payload: dict,
    background_tasks: BackgroundTasks,
    delivery_id: Optional[str] = None,
) -> dict:
    """Schedule a review run for pull_request / pull_request_review_comment events.

    Each delivery gets its own checkpoint thread, so a redelivered webhook
    resumes (or skips) its run instead of starting a second one.
    """
    target = parse_pull_request_event(event, payload)
    if target is None:
        logger.info(f"Event {event}/{payload.get('action')} not handled")
        return {
            "message": f"Event {event} action {payload.get('action')} not handled",
        }

    logger.info(f"PR event: {event}/{target['action']} on {target['owner']}/{target['repo']}#{target['pr_number']}")

    pr = f"{target['owner']}/{target['repo']}#{target['pr_number']}"
    # Redeliveries share a thread; deliveries without an id always start fresh
    thread_id = f"{pr}@{delivery_id or uuid4().hex}"

    background_tasks.add_task(
        run_review,
        target["owner"],
        target["repo"],
        target["pr_number"],
        thread_id,
    )

    return {
        "message": "Review started",
        "pr": pr,
        "action": target["action"],
        "thread_id": thread_id,
    }


async def run_review(owner: str, repo: str, pr_number: int, thread_id: Optional[str] = None) -> dict:
    """Run the review in background."""
    from src.services.reviewer.service import review_pull_request

    try:
        result = await review_pull_request(owner, repo, pr_number, thread_id=thread_id)
        logger.info(f"Review completed: {result}")
        return result.model_dump()
    except Exception as e:
        logger.error(f"Review failed: {e}")
        raise
