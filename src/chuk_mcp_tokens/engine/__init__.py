"""
Algorithm engine - validation, evaluation, mode expansion and generation.

This module provides:
- AlgorithmValidator: Structural checks run before execution
- AlgorithmExecutor: Runs steps for one iteration value
- expand_mode_combinations: Cartesian product of referenced dimension modes
- TokenGenerator: Expands an algorithm into concrete tokens
- analyze_dependencies: Read/write graph over steps
"""

from chuk_mcp_tokens.engine.dependencies import (
    DependencyGraph,
    analyze_dependencies,
    validate_dependencies,
)
from chuk_mcp_tokens.engine.evaluator import (
    AlgorithmExecutor,
    ExecutionContext,
    StepRecord,
    evaluate_expression,
    execute_algorithm,
    parse_variable_value,
)
from chuk_mcp_tokens.engine.generator import (
    TokenGenerator,
    coerce_number,
    create_unique_id,
    generate_tokens,
)
from chuk_mcp_tokens.engine.modes import expand_mode_combinations, referenced_dimensions
from chuk_mcp_tokens.engine.naming import numeric_name, scale_name, tshirt_name
from chuk_mcp_tokens.engine.validator import (
    AlgorithmValidator,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
    validate_algorithm,
)

__all__ = [
    "AlgorithmExecutor",
    "AlgorithmValidator",
    "DependencyGraph",
    "ExecutionContext",
    "StepRecord",
    "TokenGenerator",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSeverity",
    "analyze_dependencies",
    "coerce_number",
    "create_unique_id",
    "evaluate_expression",
    "execute_algorithm",
    "expand_mode_combinations",
    "generate_tokens",
    "numeric_name",
    "parse_variable_value",
    "referenced_dimensions",
    "scale_name",
    "tshirt_name",
    "validate_algorithm",
    "validate_dependencies",
]
