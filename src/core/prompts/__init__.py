"""Prompt templates using Jinja2."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

PROMPTS_DIR = Path(__file__).parent
_env = Environment(
    loader=FileSystemLoader(PROMPTS_DIR),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def render_input_understanding_prompt(codebase_overview: str, pull_request_context: str) -> str:
    """Render the repository / PR understanding prompt."""
    template = _env.get_template("input_understanding.jinja2")
    return template.render(
        codebase_overview=codebase_overview,
        pull_request_context=pull_request_context,
    )


def render_knowledge_updates_prompt() -> str:
    template = _env.get_template("knowledge_updates.jinja2")
    return template.render()


def render_review_comment_prompt(
    tool_name: str,
    position_description: str,
    filename: str,
    previous_filename: str | None,
    file_content: str,
    patch: str,
) -> str:
    """Render the per-file review prompt."""
    template = _env.get_template("review_comment.jinja2")
    return template.render(
        tool_name=tool_name,
        position_description=position_description,
        filename=filename,
        previous_filename=previous_filename,
        file_content=file_content,
        patch=patch,
    )


def render_review_summary_prompt(tool_name: str, comments: list) -> str:
    """Render the review summary prompt listing every collected comment."""
    template = _env.get_template("review_summary.jinja2")
    return template.render(tool_name=tool_name, comments=comments)


def render_reply_comment_prompt(diff_hunk: str, conversation: str) -> str:
    template = _env.get_template("reply_comment.jinja2")
    return template.render(diff_hunk=diff_hunk, conversation=conversation)
