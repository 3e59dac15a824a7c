#!/usr/bin/env python3
"""
Async Tokens MCP Server using chuk-mcp-server

This server provides MCP tools for authoring design-token algorithms.
Algorithms are parametric recipes: variables, formulas and conditions
that are evaluated across an iteration range and every combination of
design modes to produce a family of tokens.

The server provides tools for:
- Parsing formulas and converting them to and from display notation
- Discovering, describing and validating algorithms
- Evaluating an algorithm for a single iteration value
- Expanding mode combinations and generating tokens
"""

import logging
import os
from pathlib import Path

from chuk_mcp_server import ChukMCPServer

from chuk_mcp_tokens.algorithms import AlgorithmLoader
from chuk_mcp_tokens.constants import (
    ALGORITHMS_DIR_ENV,
    DEFAULT_MAX_COMBINATIONS,
    MAX_COMBINATIONS_ENV,
)
from chuk_mcp_tokens.engine import TokenGenerator
from chuk_mcp_tokens.tools import (
    register_algorithm_tools,
    register_expression_tools,
    register_generation_tools,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer("chuk-mcp-tokens")

# Paths - project algorithms default to ./algorithms
BASE_PATH = Path.cwd()
ALGORITHMS_DIR = Path(os.environ.get(ALGORITHMS_DIR_ENV) or BASE_PATH / "algorithms")
LIBRARY_PATH = Path(__file__).parent / "algorithms" / "library"

MAX_COMBINATIONS = int(os.environ.get(MAX_COMBINATIONS_ENV, DEFAULT_MAX_COMBINATIONS))

# Create services
algorithm_loader = AlgorithmLoader(
    library_path=LIBRARY_PATH,
    project_path=ALGORITHMS_DIR,
)
token_generator = TokenGenerator(max_combinations=MAX_COMBINATIONS)

# Register all tools
expression_tools = register_expression_tools(mcp)
algorithm_tools = register_algorithm_tools(mcp, algorithm_loader)
generation_tools = register_generation_tools(mcp, algorithm_loader, token_generator)

# Export tool functions for direct access
tokens_parse_formula = expression_tools["tokens_parse_formula"]
tokens_to_display = expression_tools["tokens_to_display"]
tokens_from_display = expression_tools["tokens_from_display"]
tokens_simplify_formula = expression_tools["tokens_simplify_formula"]

tokens_list_algorithms = algorithm_tools["tokens_list_algorithms"]
tokens_describe_algorithm = algorithm_tools["tokens_describe_algorithm"]
tokens_validate_algorithm = algorithm_tools["tokens_validate_algorithm"]
tokens_evaluate_algorithm = algorithm_tools["tokens_evaluate_algorithm"]
tokens_copy_algorithm_to_project = algorithm_tools["tokens_copy_algorithm_to_project"]

tokens_mode_combinations = generation_tools["tokens_mode_combinations"]
tokens_generate = generation_tools["tokens_generate"]

logger.info("CHUK Tokens MCP Server initialized")
logger.info(f"  Library path: {LIBRARY_PATH}")
logger.info(f"  Algorithms dir: {ALGORITHMS_DIR}")
