"""
Algorithm evaluator - runs an algorithm's steps for one iteration value.

Execution model:
1. Variables are resolved (per active mode) and parsed by type
2. `n` is bound to the iteration value
3. External context overrides are merged (read-only names excepted)
4. The standard function library is added
5. Steps run strictly in order; assignments are visible to later steps

Expressions are parsed once per executor and interpreted from the tree.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from chuk_mcp_tokens.constants import ITERATION_VARIABLE, StepType, VariableType
from chuk_mcp_tokens.engine.validator import validate_algorithm
from chuk_mcp_tokens.errors import (
    AlgorithmValidationError,
    EvaluationError,
    ExpressionSyntaxError,
)
from chuk_mcp_tokens.expressions import (
    STANDARD_FUNCTIONS,
    Assignment,
    Node,
    evaluate_tree,
    parse_to_tree,
    truthy,
)
from chuk_mcp_tokens.models.algorithm import Algorithm, Condition, Formula, Variable

logger = logging.getLogger(__name__)

READ_ONLY_NAMES = frozenset({ITERATION_VARIABLE, *STANDARD_FUNCTIONS})


def parse_variable_value(raw: str, var_type: VariableType) -> Any:
    """
    Parse a variable's raw text according to its declared type.

    - number: int or float; unparsable text becomes 0
    - boolean: "true" or "1" (case-insensitive) is True
    - string: a bracketed list literal becomes a list, else text
    - color: text unchanged
    """
    text = raw.strip()

    if var_type == VariableType.NUMBER:
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return 0
        return value if math.isfinite(value) else 0

    if var_type == VariableType.BOOLEAN:
        return text.lower() in ("true", "1")

    if var_type == VariableType.STRING and text.startswith("[") and text.endswith("]"):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return raw
        if isinstance(parsed, list):
            return parsed

    return raw


@dataclass(frozen=True)
class StepRecord:
    """One executed step and the value it produced."""

    step_id: str
    step_name: str
    step_type: StepType
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "step_name": self.step_name,
            "step_type": self.step_type.value,
            "value": self.value,
        }


@dataclass
class ExecutionContext:
    """Outcome of one algorithm execution."""

    iteration_value: int
    variables: dict[str, Any] = field(default_factory=dict)
    results: dict[str, Any] = field(default_factory=dict)
    final_result: Any = None
    trace: list[StepRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {
            "iteration_value": self.iteration_value,
            "final_result": self.final_result,
            "results": dict(self.results),
            "variables": dict(self.variables),
            "trace": [record.to_dict() for record in self.trace],
        }


@dataclass
class _CompiledStep:
    step_id: str
    name: str
    step_type: StepType
    expression: str
    tree: Node | None = None
    error: str | None = None


class AlgorithmExecutor:
    """
    Executes an algorithm for individual iteration values.

    The algorithm is validated and its expressions parsed once, in the
    constructor. Structural errors raise AlgorithmValidationError; a
    formula that fails to parse only fails when its step runs.
    """

    def __init__(self, algorithm: Algorithm):
        validation = validate_algorithm(algorithm)
        for warning in validation.warnings:
            logger.warning(f"Algorithm '{algorithm.name}': {warning.message}")
        if not validation.is_valid:
            raise AlgorithmValidationError(validation)

        self.algorithm = algorithm
        # Every step reference resolves, or validation would have failed.
        # The first definition wins for a repeated id.
        definitions: dict[StepType, dict[str, Formula | Condition]] = {
            StepType.FORMULA: {},
            StepType.CONDITION: {},
        }
        for formula in algorithm.formulas:
            definitions[StepType.FORMULA].setdefault(formula.id, formula)
        for condition in algorithm.conditions:
            definitions[StepType.CONDITION].setdefault(condition.id, condition)
        self._steps = []
        for step in algorithm.steps:
            definition = definitions[step.type][step.id]
            self._steps.append(
                self._compile_step(step.id, definition.name, step.type, definition.expression)
            )

    @staticmethod
    def _compile_step(
        step_id: str, name: str, step_type: StepType, expression: str
    ) -> _CompiledStep:
        compiled = _CompiledStep(step_id, name, step_type, expression)
        try:
            compiled.tree = parse_to_tree(expression)
        except ExpressionSyntaxError as e:
            compiled.error = f"Invalid expression: {e}"
            logger.warning(f"Step '{name}' has an invalid expression: {e}")
        return compiled

    def build_scope(
        self,
        n: int,
        context: Mapping[str, Any] | None = None,
        mode_context: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Build the initial evaluation scope for an iteration value."""
        scope: dict[str, Any] = {}
        modes = dict(mode_context or {})

        for variable in self.algorithm.variables:
            scope[variable.name] = self._resolve_variable(variable, modes)
        # Ids are secondary handles; they never shadow a name
        for variable in self.algorithm.variables:
            if variable.id.isidentifier() and variable.id not in scope:
                scope[variable.id] = scope[variable.name]

        scope[ITERATION_VARIABLE] = n

        for key, value in (context or {}).items():
            if key in READ_ONLY_NAMES:
                logger.warning(f"Ignoring context override of read-only name '{key}'")
                continue
            scope[key] = value

        scope.update(STANDARD_FUNCTIONS)
        return scope

    @staticmethod
    def _resolve_variable(variable: Variable, mode_context: dict[str, str]) -> Any:
        raw = variable.raw_value_for(mode_context)
        return parse_variable_value(raw, variable.type)

    def execute(
        self,
        n: int,
        context: Mapping[str, Any] | None = None,
        mode_context: Mapping[str, str] | None = None,
    ) -> ExecutionContext:
        """
        Run every step for one iteration value.

        Args:
            n: Iteration value, bound read-only as `n`
            context: Extra scope entries that override variables
            mode_context: Dimension id to active mode id

        Returns:
            ExecutionContext with named results and the final result

        Raises:
            EvaluationError: If any step fails, or the final numeric
                result is not finite
        """
        scope = self.build_scope(n, context, mode_context)
        outcome = ExecutionContext(iteration_value=n)
        last_formula: _CompiledStep | None = None

        for step in self._steps:
            value = self._run_step(step, scope)
            if step.step_type == StepType.CONDITION:
                value = truthy(value)
            else:
                outcome.final_result = value
                last_formula = step
            outcome.results[step.name] = value
            outcome.trace.append(StepRecord(step.step_id, step.name, step.step_type, value))
            logger.debug(f"n={n} step '{step.name}' -> {value!r}")

        final = outcome.final_result
        if isinstance(final, float) and not math.isfinite(final) and last_formula is not None:
            raise EvaluationError(
                f"Result is not a finite number: {final}",
                last_formula.name,
                last_formula.expression,
            )

        outcome.variables = {k: v for k, v in scope.items() if k not in STANDARD_FUNCTIONS}
        return outcome

    def _run_step(self, step: _CompiledStep, scope: dict[str, Any]) -> Any:
        if step.tree is None:
            raise EvaluationError(step.error or "Missing expression", step.name, step.expression)

        try:
            value = evaluate_tree(step.tree, scope)
        except EvaluationError as e:
            raise EvaluationError(e.reason, step.name, step.expression) from e

        if isinstance(step.tree, Assignment):
            if step.step_type == StepType.CONDITION:
                raise EvaluationError(
                    "Conditions cannot assign variables", step.name, step.expression
                )
            if step.tree.target in READ_ONLY_NAMES:
                raise EvaluationError(
                    f"Cannot assign to read-only name '{step.tree.target}'",
                    step.name,
                    step.expression,
                )
            scope[step.tree.target] = value
        return value


def execute_algorithm(
    algorithm: Algorithm,
    n: int,
    context: Mapping[str, Any] | None = None,
    mode_context: Mapping[str, str] | None = None,
) -> ExecutionContext:
    """
    Convenience function to execute an algorithm once.

    Raises:
        AlgorithmValidationError: If the algorithm is structurally invalid
        EvaluationError: If a step fails
    """
    return AlgorithmExecutor(algorithm).execute(n, context, mode_context)


def evaluate_expression(expression: str | Node, scope: Mapping[str, Any] | None = None) -> Any:
    """
    Evaluate a single expression against a scope.

    The standard function library is always available and cannot be
    shadowed by scope entries.

    Raises:
        ExpressionSyntaxError: If the text does not parse
        EvaluationError: If evaluation fails
    """
    tree = parse_to_tree(expression) if isinstance(expression, str) else expression
    full_scope = dict(scope or {})
    full_scope.update(STANDARD_FUNCTIONS)
    return evaluate_tree(tree, full_scope)
