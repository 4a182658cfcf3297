"""Knowledge tools the agent may call before reviewing."""

import re
from typing import Callable, Protocol

import httpx
from langchain_core.tools import tool

WEB_PAGE_TEXT_LIMIT = 20000
FILE_TEXT_LIMIT = 50000

_TAG_PATTERN = re.compile(r"<(script|style)[^>]*>.*?</\1>|<[^>]+>", re.DOTALL | re.IGNORECASE)
_WHITESPACE_PATTERN = re.compile(r"\n\s*\n+")


class RepositoryBrowser(Protocol):
    """Read-only repository lookups backing the knowledge tools."""

    def get_file_content(self, filename: str) -> str: ...

    def list_directory(self, path: str = "") -> list[dict]: ...

    def search_code(self, query: str) -> list[dict]: ...


def html_to_text(html: str) -> str:
    """Crude markup stripping so pages fit in the prompt."""
    text = _TAG_PATTERN.sub("", html)
    return _WHITESPACE_PATTERN.sub("\n\n", text).strip()


def create_knowledge_tools(repository: RepositoryBrowser) -> list[Callable]:
    """Create knowledge tools bound to the pull request's repository.

    Tools return error text instead of raising so one failed lookup does not
    abort the run.
    """

    @tool
    def fetch_web_page(url: str) -> str:
        """Fetch a web page (library docs, changelogs, release notes) and return its text.

        Use this when the pull request relies on a library, API or framework
        version you need up-to-date knowledge about.

        Args:
            url: Absolute http(s) URL to fetch
        """
        try:
            response = httpx.get(url, timeout=httpx.Timeout(30.0), follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            return f"Error fetching {url}: {e}"

        text = response.text
        if "html" in response.headers.get("content-type", ""):
            text = html_to_text(text)
        if len(text) > WEB_PAGE_TEXT_LIMIT:
            return text[:WEB_PAGE_TEXT_LIMIT] + "\n\n... [truncated]"
        return text

    @tool
    def get_file(path: str) -> str:
        """Fetch full contents of a file from the repository at the pull request head.

        Args:
            path: File path relative to repo root (e.g. "src/utils/helper.py")
        """
        try:
            content = repository.get_file_content(path)
        except Exception as e:
            return f"Error fetching file: {e}"
        if len(content) > FILE_TEXT_LIMIT:
            return content[:FILE_TEXT_LIMIT] + "\n\n... [truncated, file too large]"
        return content

    @tool
    def list_files(path: str = "") -> str:
        """List files and directories at a path in the repository.

        Args:
            path: Directory path relative to repo root, empty for root
        """
        try:
            contents = repository.list_directory(path)
        except Exception as e:
            return f"Error listing directory: {e}"
        lines = [f"{'dir ' if item['type'] == 'dir' else 'file'} {item['path']}" for item in contents]
        return "\n".join(lines) if lines else "Empty directory"

    @tool
    def search_codebase(query: str) -> str:
        """Search the repository for code matching a query.

        Args:
            query: Search query (supports GitHub code search syntax)
        """
        try:
            results = repository.search_code(query)
        except Exception as e:
            return f"Error searching code: {e}"
        if not results:
            return "No results found"
        return "\n".join(f"- {item['path']}" for item in results[:10])

    return [fetch_web_page, get_file, list_files, search_codebase]
