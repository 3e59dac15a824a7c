"""
Constants and enums for the token engine.

No magic strings - use enums for constrained values.
"""

from enum import Enum


class VariableType(str, Enum):
    """Declared type of an algorithm variable."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    COLOR = "color"


class StepType(str, Enum):
    """Kind of step in an algorithm's execution sequence."""

    FORMULA = "formula"
    CONDITION = "condition"


class ScaleType(str, Enum):
    """Naming policy for generated scale positions."""

    TSHIRT = "tshirt"  # Medium, Large, X-Large, Small, X-Small
    NUMERIC = "numeric"  # 100, 200, 300, 75, 50


class TokenTier(str, Enum):
    """Token tiers a generated token may be assigned to."""

    PRIMITIVE = "PRIMITIVE"
    SEMANTIC = "SEMANTIC"
    COMPONENT = "COMPONENT"


class TokenStatus(str, Enum):
    """Lifecycle status for generated tokens."""

    EXPERIMENTAL = "experimental"
    STABLE = "stable"
    DEPRECATED = "deprecated"


# Combination ceiling for mode expansion (per generation call)
DEFAULT_MAX_COMBINATIONS = 1024

# Server configuration overrides
ALGORITHMS_DIR_ENV = "CHUK_TOKENS_ALGORITHMS_DIR"
MAX_COMBINATIONS_ENV = "CHUK_TOKENS_MAX_COMBINATIONS"

# Scale naming defaults
DEFAULT_EXTRA_PREFIX = "X"
DEFAULT_INCREASING_STEP = 100
DEFAULT_DECREASING_STEP = 25
DEFAULT_NUMERIC_BASE = 100

# Default iteration range for new algorithms
DEFAULT_ITERATION_START = -2
DEFAULT_ITERATION_END = 8
DEFAULT_ITERATION_STEP = 1

# Iteration variable, always bound and read-only
ITERATION_VARIABLE = "n"

# Prefix accepted on function names for backward compatibility
LEGACY_FUNCTION_PREFIX = "Math."


class ErrorMessages:
    """User-facing error messages recorded by generation."""

    NO_FORMULAS = "Algorithm must have at least one formula for token generation"
    NO_TAXONOMY = "Must select an existing taxonomy or provide a name for a new taxonomy"
    TAXONOMY_NOT_FOUND = "Selected taxonomy with ID {taxonomy_id} not found"
    TOKEN_EXISTS = 'Token ID "{token_id}" already exists'
    NO_TERM_MAPPING = "No term mapping found for iteration {n}"
    ITERATION_FAILED = "Error generating token for iteration {n}: {error}"
    NOT_NUMERIC = "Algorithm result is not a number: {value!r}"
    NO_MODES = "No modes available for dimensions: {dimensions}"
