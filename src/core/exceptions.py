"""Reviewer errors. Each carries the HTTP status the API answers with."""


class ApiException(Exception):
    """Base reviewer error."""

    def __init__(
        self,
        status_code: int,
        message: str,
        details: dict | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(ApiException):
    """Provider, model, key or GitHub credentials missing. Aborts the run."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(500, message, details)


class PRNotFoundError(ApiException):
    def __init__(self, owner: str, repo: str, pr_number: int) -> None:
        super().__init__(
            404,
            f"Pull request not found: {owner}/{repo}#{pr_number}",
            {"owner": owner, "repo": repo, "pr_number": pr_number},
        )


class ReviewSubmissionError(ApiException):
    """GitHub rejected the review or a reply."""

    def __init__(self, pr: str, reason: str) -> None:
        super().__init__(502, f"GitHub rejected review for {pr}: {reason}", {"pr": pr})


class SignatureVerificationError(ApiException):
    """X-Hub-Signature-256 missing or wrong."""

    def __init__(self, source: str = "webhook") -> None:
        super().__init__(401, f"Invalid {source} signature")
