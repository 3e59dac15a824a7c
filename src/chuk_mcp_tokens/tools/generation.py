"""
Generation tools - MCP tools for expanding algorithms into tokens.

Catalogs (dimensions, taxonomies, existing token ids) are passed as
JSON strings, since the server holds no design-system state of its own.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from chuk_mcp_tokens.algorithms import AlgorithmLoader
from chuk_mcp_tokens.engine import TokenGenerator, expand_mode_combinations, referenced_dimensions
from chuk_mcp_tokens.errors import TooManyCombinationsError
from chuk_mcp_tokens.models import Dimension, Taxonomy

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)

_dimension_list = TypeAdapter(list[Dimension])
_taxonomy_list = TypeAdapter(list[Taxonomy])
_selection = TypeAdapter(dict[str, list[str]])
_id_list = TypeAdapter(list[str])


def parse_dimensions(text: str | None) -> list[Dimension]:
    """Parse a JSON array of dimensions."""
    return _dimension_list.validate_json(text) if text else []


def parse_taxonomies(text: str | None) -> list[Taxonomy]:
    """Parse a JSON array of taxonomies."""
    return _taxonomy_list.validate_json(text) if text else []


def parse_selected_modes(text: str | None) -> dict[str, list[str]] | None:
    """Parse a JSON object of dimension id to selected mode ids."""
    return _selection.validate_json(text) if text else None


def parse_token_ids(text: str | None) -> list[str]:
    """Parse a JSON array of token ids."""
    return _id_list.validate_json(text) if text else []


def register_generation_tools(
    mcp: ChukMCPServer,
    loader: AlgorithmLoader,
    generator: TokenGenerator | None = None,
) -> dict[str, Any]:
    """
    Register token generation tools with the MCP server.

    Args:
        mcp: The MCP server instance
        loader: The algorithm loader
        generator: Token generator (a default one is created if omitted)

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}
    token_generator = generator or TokenGenerator()

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_mode_combinations(
        name: str,
        dimensions: str | None = None,
        selected_modes: str | None = None,
    ) -> str:
        """
        List the mode combinations an algorithm would generate for.

        Args:
            name: Algorithm file name or id
            dimensions: JSON array of dimensions with their modes
            selected_modes: JSON object restricting dimension ids to mode ids

        Returns:
            JSON string with referenced dimensions and combinations

        Example:
            tokens_mode_combinations(
                name="spacing-scale",
                dimensions='[{"id": "density", "modes": [{"id": "compact"}]}]'
            )
        """
        try:
            algorithm = loader.get_algorithm(name)
            if algorithm is None:
                return json.dumps({"status": "error", "message": f"Algorithm not found: {name}"})

            combinations = expand_mode_combinations(
                algorithm.variables,
                parse_dimensions(dimensions),
                parse_selected_modes(selected_modes),
                token_generator.max_combinations,
            )

            return json.dumps(
                {
                    "status": "success",
                    "dimensions": referenced_dimensions(algorithm.variables),
                    "combinations": combinations,
                    "count": len(combinations),
                }
            )
        except (TooManyCombinationsError, ValidationError) as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to expand mode combinations")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_mode_combinations"] = tokens_mode_combinations

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_generate(
        name: str,
        dimensions: str | None = None,
        taxonomies: str | None = None,
        existing_token_ids: str | None = None,
        selected_modes: str | None = None,
    ) -> str:
        """
        Generate tokens from an algorithm.

        Produces one token per (iteration value, mode combination).
        Failures for individual cells are reported in "errors" while
        the remaining tokens are still returned. New taxonomies and
        selected taxonomies that gained terms are returned.

        Args:
            name: Algorithm file name or id
            dimensions: JSON array of dimensions with their modes
            taxonomies: JSON array of taxonomies with their terms
            existing_token_ids: JSON array of ids that must not be reused
            selected_modes: JSON object restricting dimension ids to mode ids

        Returns:
            JSON string with tokens, errors and taxonomy changes

        Example:
            tokens_generate(name="type-scale")
        """
        try:
            algorithm = loader.get_algorithm(name)
            if algorithm is None:
                return json.dumps({"status": "error", "message": f"Algorithm not found: {name}"})

            # The catalog is parsed per call, so extending it in place only
            # affects the copy that is reported back as updatedTaxonomies
            result = token_generator.generate(
                algorithm,
                existing_token_ids=parse_token_ids(existing_token_ids),
                dimensions=parse_dimensions(dimensions),
                taxonomies=parse_taxonomies(taxonomies),
                selected_modes=parse_selected_modes(selected_modes),
                modify_taxonomies_in_place=True,
            )

            return json.dumps(
                {
                    "status": "success",
                    "count": len(result.tokens),
                    **result.to_dict(),
                }
            )
        except ValidationError as e:
            return json.dumps({"status": "error", "message": str(e)})
        except Exception as e:
            logger.exception("Failed to generate tokens")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_generate"] = tokens_generate

    return tools
