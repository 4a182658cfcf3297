#!/usr/bin/env python3
"""Run the review workflow for one pull request from the command line.

Usage:
    python scripts/run_review.py owner/repo#123
    python scripts/run_review.py https://github.com/owner/repo/pull/123
    python scripts/run_review.py '#123'   (needs DEFAULT_REPO_OWNER / DEFAULT_REPO_NAME)
"""
import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

from src.core.exceptions import ConfigurationError
from src.core.logging import get_logger
from src.core.pr_parser import parse_pr_reference
from src.services.reviewer.service import review_pull_request

logger = get_logger("run_review")


async def main(argv: list[str]) -> int:
    if len(argv) != 1:
        print(__doc__)
        return 2

    ref = parse_pr_reference(argv[0])
    if ref is None:
        logger.error(f"Could not parse a pull request reference from {argv[0]!r}")
        return 2

    try:
        result = await review_pull_request(ref.owner, ref.repo, ref.pr_number)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        return 1

    print(f"Review result: {result.model_dump_json(indent=2)}")
    return 0

if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
