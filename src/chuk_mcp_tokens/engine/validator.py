"""
Algorithm Validator - validates algorithm structure before execution.

Validates:
- Required identifiers and expressions are present
- Every step references an existing formula or condition
- Variable names are usable in expressions
- Mode-based variables name a dimension
- Legacy Math. prefixes (deprecated, still accepted)
- Iteration range yields at least one value
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from chuk_mcp_tokens.constants import ITERATION_VARIABLE, LEGACY_FUNCTION_PREFIX, StepType
from chuk_mcp_tokens.expressions.functions import STANDARD_FUNCTIONS
from chuk_mcp_tokens.models.algorithm import Algorithm


class ValidationSeverity(str, Enum):
    """Severity level for validation issues."""

    ERROR = "error"  # Prevents execution
    WARNING = "warning"  # Execution possible but may misbehave
    INFO = "info"  # Informational only


@dataclass
class ValidationIssue:
    """A single validation issue."""

    severity: ValidationSeverity
    code: str
    message: str
    location: str | None = None

    def __str__(self) -> str:
        prefix = f"[{self.severity.value.upper()}]"
        location = f" at {self.location}" if self.location else ""
        return f"{prefix} {self.code}: {self.message}{location}"

    def to_dict(self) -> dict[str, str | None]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "location": self.location,
        }


class ValidationResult:
    """Result of validating an algorithm."""

    def __init__(self) -> None:
        self.issues: list[ValidationIssue] = []

    def add_error(self, code: str, message: str, location: str | None = None) -> None:
        """Add an error issue."""
        self.issues.append(ValidationIssue(ValidationSeverity.ERROR, code, message, location))

    def add_warning(self, code: str, message: str, location: str | None = None) -> None:
        """Add a warning issue."""
        self.issues.append(ValidationIssue(ValidationSeverity.WARNING, code, message, location))

    def add_info(self, code: str, message: str, location: str | None = None) -> None:
        """Add an info issue."""
        self.issues.append(ValidationIssue(ValidationSeverity.INFO, code, message, location))

    def extend(self, other: ValidationResult) -> None:
        self.issues.extend(other.issues)

    @property
    def is_valid(self) -> bool:
        """Return True if no errors (warnings/info are OK)."""
        return not any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[ValidationIssue]:
        """Get all error issues."""
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        """Get all warning issues."""
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    def messages(self) -> list[str]:
        """Error messages as plain strings."""
        return [i.message for i in self.errors]

    def __bool__(self) -> bool:
        """Boolean conversion returns is_valid."""
        return self.is_valid

    def __str__(self) -> str:
        if not self.issues:
            return "Validation passed: no issues found"
        return "\n".join(str(issue) for issue in self.issues)


class AlgorithmValidator:
    """Validates algorithm structure."""

    def validate(self, algorithm: Algorithm) -> ValidationResult:
        """
        Validate an algorithm.

        Args:
            algorithm: The algorithm to validate

        Returns:
            ValidationResult with any issues found
        """
        result = ValidationResult()

        self._validate_identity(algorithm, result)
        self._validate_variables(algorithm, result)
        self._validate_formulas(algorithm, result)
        self._validate_conditions(algorithm, result)
        self._validate_steps(algorithm, result)
        self._validate_generation(algorithm, result)

        return result

    def _validate_identity(self, algorithm: Algorithm, result: ValidationResult) -> None:
        if not algorithm.id.strip():
            result.add_error("MISSING_ID", "Algorithm ID is required", "id")
        if not algorithm.name.strip():
            result.add_error("MISSING_NAME", "Algorithm name is required", "name")

    def _validate_variables(self, algorithm: Algorithm, result: ValidationResult) -> None:
        seen: set[str] = set()
        for i, variable in enumerate(algorithm.variables, start=1):
            location = f"variables/{i}"
            if not variable.id.strip():
                result.add_error("MISSING_VARIABLE_ID", f"Variable {i}: ID is required", location)
            if not variable.name.strip():
                result.add_error(
                    "MISSING_VARIABLE_NAME", f"Variable {i}: Name is required", location
                )
                continue

            if not variable.name.isidentifier():
                result.add_warning(
                    "INVALID_VARIABLE_NAME",
                    f"Variable '{variable.name}' is not a valid identifier and "
                    "cannot be referenced by name",
                    location,
                )
            if variable.name == ITERATION_VARIABLE or variable.name in STANDARD_FUNCTIONS:
                result.add_warning(
                    "RESERVED_VARIABLE_NAME",
                    f"Variable '{variable.name}' uses a reserved name and will be shadowed",
                    location,
                )
            if variable.name in seen:
                result.add_warning(
                    "DUPLICATE_VARIABLE",
                    f"Duplicate variable name: {variable.name}",
                    location,
                )
            seen.add(variable.name)

            if variable.mode_based and not variable.dimension_id:
                result.add_warning(
                    "MODE_VARIABLE_WITHOUT_DIMENSION",
                    f"Variable '{variable.name}' is mode-based but has no dimension; "
                    "its default value will always be used",
                    location,
                )

    def _validate_formulas(self, algorithm: Algorithm, result: ValidationResult) -> None:
        for i, formula in enumerate(algorithm.formulas, start=1):
            location = f"formulas/{i}"
            if not formula.id.strip():
                result.add_error("MISSING_FORMULA_ID", f"Formula {i}: ID is required", location)
            if not formula.name.strip():
                result.add_error(
                    "MISSING_FORMULA_NAME", f"Formula {i}: Name is required", location
                )
            if not formula.expression.strip() and not formula.ast:
                result.add_error(
                    "MISSING_EXPRESSION",
                    f"Formula {i}: JavaScript expression is required",
                    location,
                )
            elif LEGACY_FUNCTION_PREFIX in formula.expression:
                result.add_warning(
                    "DEPRECATED_MATH_PREFIX",
                    f"Formula '{formula.name}' uses the deprecated '{LEGACY_FUNCTION_PREFIX}' "
                    "prefix; call functions by bare name",
                    location,
                )

    def _validate_conditions(self, algorithm: Algorithm, result: ValidationResult) -> None:
        for i, condition in enumerate(algorithm.conditions, start=1):
            location = f"conditions/{i}"
            if not condition.id.strip():
                result.add_error(
                    "MISSING_CONDITION_ID", f"Condition {i}: ID is required", location
                )
            if not condition.expression.strip():
                result.add_error(
                    "MISSING_EXPRESSION",
                    f"Condition {i}: Expression is required",
                    location,
                )

    def _validate_steps(self, algorithm: Algorithm, result: ValidationResult) -> None:
        if not algorithm.steps:
            result.add_warning("NO_STEPS", "Algorithm has no steps defined", "steps")
            return

        for i, step in enumerate(algorithm.steps, start=1):
            location = f"steps/{i}"
            if not step.id.strip():
                result.add_error("MISSING_STEP_ID", f"Step {i}: ID is required", location)
                continue
            if step.type == StepType.FORMULA and algorithm.get_formula(step.id) is None:
                result.add_error(
                    "UNRESOLVED_STEP",
                    f"Step {i}: Referenced formula '{step.id}' not found",
                    location,
                )
            elif step.type == StepType.CONDITION and algorithm.get_condition(step.id) is None:
                result.add_error(
                    "UNRESOLVED_STEP",
                    f"Step {i}: Referenced condition '{step.id}' not found",
                    location,
                )

    def _validate_generation(self, algorithm: Algorithm, result: ValidationResult) -> None:
        generation = algorithm.token_generation
        if generation is None or not generation.enabled:
            return
        if generation.iteration_range.count == 0:
            result.add_warning(
                "EMPTY_ITERATION_RANGE",
                "Iteration range end is before start; no tokens will be generated",
                "token_generation/iteration_range",
            )


def validate_algorithm(algorithm: Algorithm) -> ValidationResult:
    """
    Convenience function to validate an algorithm.

    Args:
        algorithm: The algorithm to validate

    Returns:
        ValidationResult
    """
    validator = AlgorithmValidator()
    return validator.validate(algorithm)
