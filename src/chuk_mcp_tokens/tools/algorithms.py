"""
Algorithm tools - MCP tools for algorithm discovery and evaluation.

Tools for listing algorithms, describing and validating them, and
running them for a single iteration value.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from chuk_mcp_tokens.algorithms import AlgorithmLoader
from chuk_mcp_tokens.engine import (
    AlgorithmExecutor,
    analyze_dependencies,
    validate_algorithm,
    validate_dependencies,
)
from chuk_mcp_tokens.errors import (
    AlgorithmValidationError,
    EvaluationError,
    ExpressionSyntaxError,
)
from chuk_mcp_tokens.expressions import to_display_notation

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def parse_json_object(text: str | None, argument: str) -> dict[str, Any]:
    """Parse an optional JSON object argument."""
    if not text:
        return {}
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"{argument} must be a JSON object")
    return data


def register_algorithm_tools(mcp: ChukMCPServer, loader: AlgorithmLoader) -> dict[str, Any]:
    """
    Register algorithm tools with the MCP server.

    Args:
        mcp: The MCP server instance
        loader: The algorithm loader

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_list_algorithms() -> str:
        """
        List available algorithms.

        Returns all algorithms from the library and project with
        basic metadata.

        Returns:
            JSON string with list of algorithm summaries

        Example:
            tokens_list_algorithms()
        """
        try:
            algorithms = loader.list_algorithms()
            return json.dumps(
                {
                    "status": "success",
                    "algorithms": [a.model_dump(mode="json") for a in algorithms],
                    "count": len(algorithms),
                }
            )
        except Exception as e:
            logger.exception("Failed to list algorithms")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_list_algorithms"] = tokens_list_algorithms

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_describe_algorithm(name: str) -> str:
        """
        Get detailed information about an algorithm.

        Returns variables, formulas with display notation, conditions,
        the step order, the dependency graph and token generation
        settings.

        Args:
            name: Algorithm file name or id

        Returns:
            JSON string with algorithm details

        Example:
            tokens_describe_algorithm(name="type-scale")
        """
        try:
            algorithm = loader.get_algorithm(name)
            if algorithm is None:
                return json.dumps({"status": "error", "message": f"Algorithm not found: {name}"})

            display: dict[str, str | None] = {}
            for formula in algorithm.formulas:
                try:
                    display[formula.name] = to_display_notation(formula.expression)
                except ExpressionSyntaxError:
                    display[formula.name] = None

            return json.dumps(
                {
                    "status": "success",
                    "algorithm": algorithm.to_yaml_dict(),
                    "display": display,
                    "dependencies": analyze_dependencies(algorithm).to_dict(),
                }
            )
        except Exception as e:
            logger.exception("Failed to describe algorithm")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_describe_algorithm"] = tokens_describe_algorithm

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_validate_algorithm(name: str) -> str:
        """
        Validate an algorithm's structure and data flow.

        Structural errors block execution; dependency findings such as
        unused variables are reported alongside.

        Args:
            name: Algorithm file name or id

        Returns:
            JSON string with validity and issues

        Example:
            tokens_validate_algorithm(name="spacing-scale")
        """
        try:
            algorithm = loader.get_algorithm(name)
            if algorithm is None:
                return json.dumps({"status": "error", "message": f"Algorithm not found: {name}"})

            result = validate_algorithm(algorithm)
            result.extend(validate_dependencies(algorithm))

            return json.dumps(
                {
                    "status": "success",
                    "valid": result.is_valid,
                    "errors": [i.to_dict() for i in result.errors],
                    "warnings": [i.to_dict() for i in result.warnings],
                }
            )
        except Exception as e:
            logger.exception("Failed to validate algorithm")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_validate_algorithm"] = tokens_validate_algorithm

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_evaluate_algorithm(
        name: str,
        n: int = 0,
        mode_context: str | None = None,
        context: str | None = None,
    ) -> str:
        """
        Run an algorithm for one iteration value.

        Args:
            name: Algorithm file name or id
            n: Iteration value
            mode_context: JSON object of dimension id to mode id
            context: JSON object of scope overrides

        Returns:
            JSON string with step results, the final result and a trace

        Example:
            tokens_evaluate_algorithm(
                name="spacing-scale",
                n=2,
                mode_context='{"density": "compact"}'
            )
        """
        try:
            algorithm = loader.get_algorithm(name)
            if algorithm is None:
                return json.dumps({"status": "error", "message": f"Algorithm not found: {name}"})

            modes = parse_json_object(mode_context, "mode_context")
            overrides = parse_json_object(context, "context")

            executor = AlgorithmExecutor(algorithm)
            outcome = executor.execute(n, context=overrides, mode_context=modes)

            return json.dumps({"status": "success", **outcome.to_dict()}, default=str)
        except AlgorithmValidationError as e:
            return json.dumps({"status": "error", "message": str(e), "errors": e.messages})
        except (EvaluationError, ValueError) as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to evaluate algorithm")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_evaluate_algorithm"] = tokens_evaluate_algorithm

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_copy_algorithm_to_project(name: str) -> str:
        """
        Copy a library algorithm to the project for customization.

        Args:
            name: Algorithm file name in the library

        Returns:
            JSON string with the copied file path

        Example:
            tokens_copy_algorithm_to_project(name="type-scale")
        """
        try:
            dest = loader.copy_to_project(name)
            if dest is None:
                return json.dumps(
                    {"status": "error", "message": f"Algorithm not found in library: {name}"}
                )

            return json.dumps(
                {
                    "status": "success",
                    "name": name,
                    "path": str(dest),
                    "message": f"Copied algorithm '{name}' to project",
                }
            )
        except ValueError as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to copy algorithm")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_copy_algorithm_to_project"] = tokens_copy_algorithm_to_project

    return tools
