"""GitHub API client - data layer."""

from typing import Optional
from github import Auth, Github, GithubException, GithubIntegration, UnknownObjectException
from github.PullRequest import PullRequest
from github.Repository import Repository
from loguru import logger

from src.config import settings
from src.core.exceptions import ConfigurationError, PRNotFoundError, ReviewSubmissionError

_github_client: Optional[Github] = None
_bot_login: Optional[str] = None


def _app_auth() -> Auth.AppAuth:
    private_key = settings.github_private_key.replace("\\n", "\n")
    return Auth.AppAuth(int(settings.github_app_id), private_key)


def _has_app_credentials() -> bool:
    return all([settings.github_app_id, settings.github_private_key, settings.github_installation_id])


def get_github_client() -> Github:
    """Get an authenticated GitHub client (token first, then App installation)."""
    global _github_client

    if _github_client:
        return _github_client

    if settings.github_token:
        _github_client = Github(auth=Auth.Token(settings.github_token))
        logger.info("GitHub token client initialized")
        return _github_client

    if not _has_app_credentials():
        raise ConfigurationError("GitHub credentials not configured")

    integration = GithubIntegration(auth=_app_auth())
    access_token = integration.get_access_token(int(settings.github_installation_id)).token
    _github_client = Github(auth=Auth.Token(access_token))

    logger.info("GitHub App client initialized")
    return _github_client


def fetch_authenticated_login() -> str:
    """Login the bot posts as."""
    global _bot_login

    if settings.github_bot_login:
        return settings.github_bot_login
    if _bot_login:
        return _bot_login

    if not settings.github_token and _has_app_credentials():
        # Installation tokens cannot call /user; App bots post as "<slug>[bot]"
        app = GithubIntegration(auth=_app_auth()).get_app()
        _bot_login = f"{app.slug}[bot]"
    else:
        _bot_login = get_github_client().get_user().login

    return _bot_login


def fetch_repository(owner: str, repo: str) -> Repository:
    client = get_github_client()
    return client.get_repo(f"{owner}/{repo}")


def fetch_pull_request(owner: str, repo: str, pr_number: int) -> PullRequest:
    """Fetch a pull request from GitHub API."""
    try:
        return fetch_repository(owner, repo).get_pull(pr_number)
    except UnknownObjectException:
        raise PRNotFoundError(owner, repo, pr_number) from None


def fetch_pr_files(pr: PullRequest) -> list[dict]:
    """Fetch changed files from a PR, in GitHub's order."""
    files = []
    for f in pr.get_files():
        files.append({
            "filename": f.filename,
            "previous_filename": f.previous_filename,
            "status": f.status,
            "patch": f.patch,
        })
    return files


def fetch_review_comments(pr: PullRequest) -> list[dict]:
    """Fetch existing inline review comments, oldest first."""
    return [
        {
            "id": c.id,
            "user_login": c.user.login,
            "diff_hunk": c.diff_hunk or "",
            "body": c.body or "",
            "in_reply_to_id": c.in_reply_to_id,
        }
        for c in pr.get_review_comments()
    ]


def fetch_review_authors(pr: PullRequest) -> set[str]:
    """Logins of everyone who submitted a review on the PR."""
    return {review.user.login for review in pr.get_reviews() if review.user}


def _github_error_reason(e: GithubException) -> str:
    if isinstance(e.data, dict) and e.data.get("message"):
        return f"{e.status} {e.data['message']}"
    return str(e.status)


def create_review_comment_reply(pr: PullRequest, comment_id: int, body: str) -> None:
    try:
        pr.create_review_comment_reply(comment_id, body)
    except GithubException as e:
        raise ReviewSubmissionError(f"#{pr.number}", _github_error_reason(e)) from e
    logger.info(f"Replied to review comment {comment_id}")


def create_review(
    pr: PullRequest,
    body: str,
    comments: list[dict],
    event: str = "COMMENT",
) -> None:
    """Create a review on a PR with position-anchored inline comments."""
    review_comments = [
        {"path": c["path"], "position": c["position"], "body": c["body"]}
        for c in comments
    ]

    try:
        pr.create_review(
            body=body,
            event=event,
            comments=review_comments,
        )
    except GithubException as e:
        raise ReviewSubmissionError(f"#{pr.number}", _github_error_reason(e)) from e
    logger.info(f"Created review with {len(review_comments)} comments")


def fetch_file_contents(owner: str, repo: str, path: str, ref: str = "HEAD") -> str:
    """Fetch full file contents from repository."""
    repository = fetch_repository(owner, repo)
    try:
        content = repository.get_contents(path, ref=ref)
        if isinstance(content, list):
            raise ValueError(f"Path {path} is a directory, not a file")
        return content.decoded_content.decode("utf-8", errors="replace")
    except Exception as e:
        logger.error(f"Failed to fetch file {path}: {e}")
        raise


def fetch_directory_contents(owner: str, repo: str, path: str = "", ref: str = "HEAD") -> list[dict]:
    """List contents of a directory in the repository."""
    repository = fetch_repository(owner, repo)
    try:
        contents = repository.get_contents(path, ref=ref)
        if not isinstance(contents, list):
            contents = [contents]
        return [
            {
                "name": item.name,
                "path": item.path,
                "type": item.type,  # "file" or "dir"
                "size": item.size if item.type == "file" else None,
            }
            for item in contents
        ]
    except Exception as e:
        logger.error(f"Failed to list directory {path}: {e}")
        raise


def search_code_in_repo(owner: str, repo: str, query: str) -> list[dict]:
    """Search code in repository using GitHub search API."""
    client = get_github_client()
    search_query = f"{query} repo:{owner}/{repo}"
    try:
        results = client.search_code(search_query)
        return [{"path": item.path, "name": item.name} for item in results[:20]]
    except Exception as e:
        logger.error(f"Code search failed for '{query}': {e}")
        raise
