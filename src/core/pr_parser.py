"""Parse pull request references given on the command line."""

import re
from dataclasses import dataclass
from typing import Optional

from src.config import settings

_URL_PATTERN = re.compile(r"https?://github\.com/([^/]+)/([^/]+)/pull/(\d+)")
_FULL_REF_PATTERN = re.compile(r"^([a-zA-Z0-9_-]+)/([a-zA-Z0-9_.-]+)#(\d+)$")
_SHORT_PATTERN = re.compile(r"^#?(\d+)$")


@dataclass(frozen=True)
class PRReference:
    """Parsed PR reference."""

    owner: str
    repo: str
    pr_number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.pr_number}"


def parse_pr_reference(text: str) -> Optional[PRReference]:
    """
    Parse a PR reference.

    Supported formats:
    - https://github.com/owner/repo/pull/123 -> full URL
    - owner/repo#123 -> specific repo
    - #123 or 123 -> uses default owner/repo from settings
    """
    text = text.strip()

    match = _URL_PATTERN.search(text)
    if match:
        return PRReference(match.group(1), match.group(2), int(match.group(3)))

    match = _FULL_REF_PATTERN.match(text)
    if match:
        return PRReference(match.group(1), match.group(2), int(match.group(3)))

    match = _SHORT_PATTERN.match(text)
    if match:
        if not settings.default_repo_owner or not settings.default_repo_name:
            return None
        return PRReference(
            owner=settings.default_repo_owner,
            repo=settings.default_repo_name,
            pr_number=int(match.group(1)),
        )

    return None
