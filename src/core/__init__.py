"""Shared library utilities."""

from src.core.costs import CostTracker, CostTrackingHandler, estimate_tokens
from src.core.llm import AIProvider, get_chat_llm
from src.core.logging import get_logger
from src.core.pr_parser import PRReference, parse_pr_reference

__all__ = [
    "AIProvider",
    "CostTracker",
    "CostTrackingHandler",
    "estimate_tokens",
    "get_chat_llm",
    "get_logger",
    "PRReference",
    "parse_pr_reference",
]
