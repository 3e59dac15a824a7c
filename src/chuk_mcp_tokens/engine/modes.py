"""
Mode combination expansion.

A generated token needs one value per combination of the modes its
algorithm actually varies over. Only dimensions referenced by
mode-based variables take part; the result is their Cartesian product.
"""

from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Iterable, Mapping, Sequence

from chuk_mcp_tokens.constants import DEFAULT_MAX_COMBINATIONS
from chuk_mcp_tokens.errors import TooManyCombinationsError
from chuk_mcp_tokens.models.algorithm import Variable
from chuk_mcp_tokens.models.catalog import Dimension

logger = logging.getLogger(__name__)


def referenced_dimensions(variables: Iterable[Variable]) -> list[str]:
    """Dimension ids used by mode-based variables, in first-reference order."""
    dimension_ids: list[str] = []
    for variable in variables:
        if variable.mode_based and variable.dimension_id:
            if variable.dimension_id not in dimension_ids:
                dimension_ids.append(variable.dimension_id)
    return dimension_ids


def candidate_modes(
    dimension_ids: Sequence[str],
    dimensions: Sequence[Dimension],
    selected_modes: Mapping[str, Sequence[str]] | None = None,
) -> dict[str, list[str]]:
    """
    Candidate mode ids per dimension.

    An explicit selection wins; otherwise every mode the catalog lists
    for the dimension. Unknown dimensions have no candidates.
    """
    by_id = {d.id: d for d in dimensions}
    candidates: dict[str, list[str]] = {}
    for dimension_id in dimension_ids:
        if selected_modes and dimension_id in selected_modes:
            candidates[dimension_id] = list(selected_modes[dimension_id])
        elif dimension_id in by_id:
            candidates[dimension_id] = by_id[dimension_id].mode_ids
        else:
            logger.warning(f"Dimension '{dimension_id}' not found in catalog")
            candidates[dimension_id] = []
    return candidates


def expand_mode_combinations(
    variables: Iterable[Variable],
    dimensions: Sequence[Dimension],
    selected_modes: Mapping[str, Sequence[str]] | None = None,
    max_combinations: int = DEFAULT_MAX_COMBINATIONS,
) -> list[dict[str, str]]:
    """
    Enumerate every mode combination the variables vary over.

    Args:
        variables: Algorithm variables
        dimensions: Dimension catalog
        selected_modes: Optional dimension id -> mode ids to restrict to
        max_combinations: Ceiling on the number of combinations

    Returns:
        One dimension id -> mode id mapping per combination. `[{}]` when
        no variable is mode-based; `[]` when any dimension has no modes.

    Raises:
        TooManyCombinationsError: If the product exceeds max_combinations
    """
    dimension_ids = referenced_dimensions(variables)
    if not dimension_ids:
        return [{}]

    candidates = candidate_modes(dimension_ids, dimensions, selected_modes)
    count = math.prod(len(candidates[d]) for d in dimension_ids)
    if count > max_combinations:
        raise TooManyCombinationsError(count, max_combinations)
    if count == 0:
        return []

    return [
        dict(zip(dimension_ids, combination, strict=True))
        for combination in itertools.product(*(candidates[d] for d in dimension_ids))
    ]


def empty_dimensions(
    variables: Iterable[Variable],
    dimensions: Sequence[Dimension],
    selected_modes: Mapping[str, Sequence[str]] | None = None,
) -> list[str]:
    """Referenced dimensions that have no candidate modes."""
    dimension_ids = referenced_dimensions(variables)
    candidates = candidate_modes(dimension_ids, dimensions, selected_modes)
    return [d for d in dimension_ids if not candidates[d]]
