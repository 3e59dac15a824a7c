"""
MCP tool implementations.

Tools are organized by domain:
- expressions - Formula parsing, notation conversion, simplification
- algorithms - Algorithm discovery, validation and evaluation
- generation - Mode combinations and token generation
"""

from chuk_mcp_tokens.tools.algorithms import register_algorithm_tools
from chuk_mcp_tokens.tools.expressions import register_expression_tools
from chuk_mcp_tokens.tools.generation import register_generation_tools

__all__ = [
    "register_algorithm_tools",
    "register_expression_tools",
    "register_generation_tools",
]
