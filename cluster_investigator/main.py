"""Command-line entrypoint.

  cluster-investigator "Why is my nginx pod crashing?"
  cluster-investigator --mcp
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from cluster_investigator.core.config import settings
from cluster_investigator.core.exceptions import ConfigurationError
from cluster_investigator.core.logging_config import configure_logging
from cluster_investigator.observability.tracing import init_tracing

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cluster-investigator",
        description="Answer questions about a Kubernetes cluster with an AI agent.",
    )
    parser.add_argument("question", nargs="?", help="Natural-language question about the cluster")
    parser.add_argument("--mcp", action="store_true", help="Serve the investigate tool over MCP stdio")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.mcp and not args.question:
        parser.error("a question is required unless --mcp is given")

    configure_logging(settings.log_level, settings.log_format)
    try:
        init_tracing(settings)
    except ConfigurationError as e:
        logger.error("%s (%s)", e.message, e.recovery_hint)
        return 1

    if args.mcp:
        from cluster_investigator.mcp.server import create_mcp_server

        create_mcp_server().run()
        return 0

    from cluster_investigator.planner.loop import investigate

    result = asyncio.run(investigate(args.question))
    print(result.answer)
    return 1 if result.is_error else 0


if __name__ == "__main__":
    sys.exit(main())
