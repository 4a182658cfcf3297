"""Token and cost accounting for model calls."""

import math
from dataclasses import dataclass
from typing import Any, Optional

from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.outputs import LLMResult

from src.core.logging import get_logger

logger = get_logger("costs")

# USD per 1K tokens
MODEL_COSTS: dict[str, dict[str, float]] = {
    "gemini-1.5-pro": {"input": 0.00025, "output": 0.0005},
    "gemini-1.5-flash": {"input": 0.0001, "output": 0.0002},
    "mixtral-8x7b-32768": {"input": 0.0027, "output": 0.0027},
}

# Flat GPT-4 pricing, only used for the rough per-stage estimates
ESTIMATE_COST_PER_1K_TOKENS = {"input": 0.03, "output": 0.06}


def estimate_tokens(text: str) -> int:
    """Rough token estimate: ~4 characters per token."""
    return math.ceil(len(text) / 4)


def calculate_cost(tokens: int, kind: str) -> float:
    """Estimated cost of `tokens` input or output tokens."""
    return (tokens / 1000) * ESTIMATE_COST_PER_1K_TOKENS[kind]


def log_stage_estimate(stage: str, kind: str, text: str) -> float:
    """Log the estimated token count and cost for one side of a stage call."""
    tokens = estimate_tokens(text)
    cost = calculate_cost(tokens, kind)
    label = kind.capitalize()
    logger.info(f"[LLM Cost] {stage} - {label} Tokens: {tokens}")
    logger.info(f"[LLM Cost] {stage} - Estimated {label} Cost: ${cost:.3f}")
    return cost


@dataclass
class CostTracker:
    """Running token and cost totals across every model call of a run."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_cost: float = 0.0

    def record(
        self,
        model_name: str,
        input_tokens: int,
        output_tokens: int,
        price_table: Optional[dict[str, dict[str, float]]] = None,
    ) -> float:
        """Add one call's usage. Returns the cost attributed to the call.

        Unpriced models still count tokens but contribute zero cost.
        """
        prices = (MODEL_COSTS if price_table is None else price_table).get(model_name)

        self.input_tokens += input_tokens
        self.output_tokens += output_tokens

        if not prices:
            logger.debug(f"[Cost Tracking] No price entry for model {model_name}")
            return 0.0

        call_cost = (input_tokens * prices["input"]) / 1000 + (output_tokens * prices["output"]) / 1000
        self.total_cost += call_cost
        return call_cost

    def log_summary(self) -> None:
        logger.info("=== Final Cost Summary ===")
        logger.info(f"Total Input Tokens: {self.input_tokens}")
        logger.info(f"Total Output Tokens: {self.output_tokens}")
        logger.info(f"Total Cost: ${self.total_cost:.4f}")


def _first_present(*values: Any) -> int:
    for value in values:
        if value:
            return int(value)
    return 0


def extract_token_usage(response: LLMResult) -> tuple[int, int]:
    """Pull (input, output) token counts out of whatever shape the provider returned."""
    llm_output = response.llm_output or {}
    token_usage = llm_output.get("token_usage") or {}

    usage_metadata: dict = {}
    if response.generations and response.generations[0]:
        message = getattr(response.generations[0][0], "message", None)
        usage_metadata = getattr(message, "usage_metadata", None) or {}

    input_tokens = _first_present(
        llm_output.get("prompt_token_count"),
        token_usage.get("prompt_tokens"),
        usage_metadata.get("input_tokens"),
    )
    output_tokens = _first_present(
        llm_output.get("completion_token_count"),
        token_usage.get("completion_tokens"),
        usage_metadata.get("output_tokens"),
    )
    return input_tokens, output_tokens


class CostTrackingHandler(BaseCallbackHandler):
    """Callback that feeds every finished model call into a CostTracker."""

    # Mutate the tracker on the calling task rather than a thread pool
    run_inline = True

    def __init__(
        self,
        tracker: CostTracker,
        default_model: str,
        price_table: Optional[dict[str, dict[str, float]]] = None,
    ) -> None:
        self.tracker = tracker
        self.default_model = default_model
        self.price_table = price_table

    def on_llm_end(self, response: LLMResult, **kwargs: Any) -> None:
        model_name = (response.llm_output or {}).get("model_name") or self.default_model
        input_tokens, output_tokens = extract_token_usage(response)

        logger.info(f"Model: {model_name}")
        call_cost = self.tracker.record(model_name, input_tokens, output_tokens, self.price_table)

        logger.info(f"[Cost Tracking] Model: {model_name}")
        logger.info(f"Input Tokens: {input_tokens}")
        logger.info(f"Output Tokens: {output_tokens}")
        logger.info(f"Cost for this call: ${call_cost:.4f}")
        logger.info(f"Total cost so far: ${self.tracker.total_cost:.4f}")
