"""
Expression tools - MCP tools for working with formula notation.

Tools for parsing formulas, converting between linear text and display
notation, and simplifying expressions.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from chuk_mcp_tokens.errors import ExpressionSyntaxError
from chuk_mcp_tokens.expressions import (
    build_from_tree,
    check_tree,
    complexity_level,
    complexity_score,
    extract_variables,
    from_display_notation,
    parse_to_tree,
    render_display,
    simplify,
    to_display_notation,
)

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def register_expression_tools(mcp: ChukMCPServer) -> dict[str, Any]:
    """
    Register expression tools with the MCP server.

    Args:
        mcp: The MCP server instance

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_parse_formula(expression: str) -> str:
        """
        Parse a formula and describe it.

        Returns the expression tree, canonical linear text, display
        notation, the variables it reads, its complexity and any
        advisory warnings.

        Args:
            expression: Linear formula text (e.g., "size = base * ratio ^ n")

        Returns:
            JSON string with the parsed formula

        Example:
            tokens_parse_formula(expression="base * pow(ratio, n)")
        """
        try:
            tree = parse_to_tree(expression)
            return json.dumps(
                {
                    "status": "success",
                    "ast": tree.to_dict(),
                    "expression": build_from_tree(tree),
                    "display": render_display(tree),
                    "variables": extract_variables(tree),
                    "complexity": {
                        "score": complexity_score(tree),
                        "level": complexity_level(tree).value,
                    },
                    "warnings": check_tree(tree),
                }
            )
        except ExpressionSyntaxError as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to parse formula")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_parse_formula"] = tokens_parse_formula

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_to_display(expression: str) -> str:
        """
        Convert linear formula text to display notation.

        Args:
            expression: Linear formula text

        Returns:
            JSON string with the display notation

        Example:
            tokens_to_display(expression="sqrt(area) / 2")
        """
        try:
            return json.dumps(
                {
                    "status": "success",
                    "expression": expression,
                    "display": to_display_notation(expression),
                }
            )
        except ExpressionSyntaxError as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to convert to display notation")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_to_display"] = tokens_to_display

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_from_display(display: str) -> str:
        """
        Convert display notation to linear formula text.

        Args:
            display: Display notation (e.g., "{base} \\times {ratio}^{{n}}")

        Returns:
            JSON string with the linear expression

        Example:
            tokens_from_display(display="\\sqrt{{area}} \\div 2")
        """
        try:
            return json.dumps(
                {
                    "status": "success",
                    "display": display,
                    "expression": from_display_notation(display),
                }
            )
        except ExpressionSyntaxError as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to convert from display notation")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_from_display"] = tokens_from_display

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_simplify_formula(expression: str) -> str:
        """
        Simplify a formula.

        Folds constant arithmetic and removes identities such as
        x + 0, x * 1 and x ^ 1.

        Args:
            expression: Linear formula text

        Returns:
            JSON string with original and simplified text

        Example:
            tokens_simplify_formula(expression="base * 1 + 2 * 3")
        """
        try:
            tree = parse_to_tree(expression)
            simplified = simplify(tree)
            return json.dumps(
                {
                    "status": "success",
                    "original": expression,
                    "simplified": build_from_tree(simplified),
                    "display": render_display(simplified),
                }
            )
        except ExpressionSyntaxError as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to simplify formula")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_simplify_formula"] = tokens_simplify_formula

    return tools
