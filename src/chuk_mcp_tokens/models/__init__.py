"""
Pydantic models for the token engine.

This module provides:
- Algorithm: Variables, formulas, conditions and steps
- TokenGeneration: Iteration range, naming and bulk assignments
- Dimension/Mode: Axes of design variation
- Taxonomy/Term: Classification schemes for generated tokens
- GeneratedToken/GenerationResult: Generation output
"""

from chuk_mcp_tokens.models.algorithm import (
    Algorithm,
    BulkAssignments,
    Condition,
    Formula,
    IterationRange,
    LogicalMapping,
    Step,
    TokenGeneration,
    Variable,
)
from chuk_mcp_tokens.models.catalog import (
    Dimension,
    Mode,
    Taxonomy,
    TaxonomyRef,
    Term,
)
from chuk_mcp_tokens.models.token import GeneratedToken, GenerationResult, ModeValue

__all__ = [
    "Algorithm",
    "BulkAssignments",
    "Condition",
    "Dimension",
    "Formula",
    "GeneratedToken",
    "GenerationResult",
    "IterationRange",
    "LogicalMapping",
    "Mode",
    "ModeValue",
    "Step",
    "Taxonomy",
    "TaxonomyRef",
    "Term",
    "TokenGeneration",
    "Variable",
]
