#!/usr/bin/env python3
"""
Entry point for the CHUK Tokens MCP Server.

Supports stdio and http transports. The project algorithms directory
and the mode combination ceiling can be set on the command line; both
are handed to the server module through environment variables so they
are in place before it builds its services.
"""

import argparse
import asyncio
import logging
import os

from chuk_mcp_tokens.constants import (
    ALGORITHMS_DIR_ENV,
    DEFAULT_MAX_COMBINATIONS,
    MAX_COMBINATIONS_ENV,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> None:
    """Parse arguments and run the server on the selected transport."""
    parser = argparse.ArgumentParser(description="CHUK Tokens MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport mode (default: stdio)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="HTTP port (only for http transport)",
    )
    parser.add_argument(
        "--algorithms-dir",
        help="Project algorithms directory (default: ./algorithms)",
    )
    parser.add_argument(
        "--max-combinations",
        type=int,
        default=None,
        help=f"Mode combination ceiling per generation (default: {DEFAULT_MAX_COMBINATIONS})",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    if args.algorithms_dir:
        os.environ[ALGORITHMS_DIR_ENV] = args.algorithms_dir
    if args.max_combinations is not None:
        if args.max_combinations < 1:
            parser.error("--max-combinations must be at least 1")
        os.environ[MAX_COMBINATIONS_ENV] = str(args.max_combinations)

    # Services are built at import time from the environment set above
    from chuk_mcp_tokens.async_server import mcp

    if args.transport == "stdio":
        logger.info("Starting CHUK Tokens MCP Server (stdio)")
        asyncio.run(mcp.run_stdio())
    else:
        logger.info(f"Starting CHUK Tokens MCP Server (http:{args.port})")
        asyncio.run(mcp.run_http(port=args.port))


if __name__ == "__main__":
    main()
