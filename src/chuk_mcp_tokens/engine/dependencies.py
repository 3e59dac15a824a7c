"""
Dependency analysis - which steps read and write which names.

Builds a graph over an algorithm's steps:
- Nodes: one per step, with the names it reads (inputs) and assigns (outputs)
- Edges: variable -> step, and producing step -> consuming step
- Variable usage: which formulas and conditions read each variable

The analysis is advisory; execution never depends on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chuk_mcp_tokens.constants import ITERATION_VARIABLE, StepType
from chuk_mcp_tokens.engine.validator import ValidationResult
from chuk_mcp_tokens.errors import ExpressionSyntaxError
from chuk_mcp_tokens.expressions import Assignment, extract_variables, parse_to_tree
from chuk_mcp_tokens.models.algorithm import Algorithm


@dataclass
class StepNode:
    """A step in the dependency graph."""

    id: str
    name: str
    type: StepType
    index: int
    inputs: list[str] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    parse_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "index": self.index,
            "inputs": self.inputs,
            "outputs": self.outputs,
            "dependencies": self.dependencies,
        }


@dataclass(frozen=True)
class DependencyEdge:
    """Directed edge: source feeds target."""

    source: str
    target: str
    type: str  # "variable" or "formula"


@dataclass
class VariableUsage:
    formulas: list[str] = field(default_factory=list)
    conditions: list[str] = field(default_factory=list)
    is_system_variable: bool = False


@dataclass
class DependencyGraph:
    """Dependency graph for an algorithm."""

    nodes: list[StepNode] = field(default_factory=list)
    edges: list[DependencyEdge] = field(default_factory=list)
    execution_order: list[str] = field(default_factory=list)
    variable_usage: dict[str, VariableUsage] = field(default_factory=dict)

    def get_node(self, node_id: str) -> StepNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [{"source": e.source, "target": e.target, "type": e.type} for e in self.edges],
            "execution_order": list(self.execution_order),
            "variable_usage": {
                name: {
                    "formulas": u.formulas,
                    "conditions": u.conditions,
                    "is_system_variable": u.is_system_variable,
                }
                for name, u in self.variable_usage.items()
            },
        }


def analyze_dependencies(algorithm: Algorithm) -> DependencyGraph:
    """
    Build the dependency graph for an algorithm's steps.

    Steps that reference missing formulas or conditions are skipped;
    structural validation reports those.
    """
    graph = DependencyGraph()
    variable_names = {v.name for v in algorithm.variables} | {v.id for v in algorithm.variables}

    for variable in algorithm.variables:
        graph.variable_usage[variable.name] = VariableUsage()
    graph.variable_usage[ITERATION_VARIABLE] = VariableUsage(is_system_variable=True)

    producers: dict[str, str] = {}  # assigned name -> id of the last step assigning it

    for index, step in enumerate(algorithm.steps):
        if step.type == StepType.FORMULA:
            formula = algorithm.get_formula(step.id)
            if formula is None:
                continue
            name, expression = formula.name, formula.expression
        else:
            condition = algorithm.get_condition(step.id)
            if condition is None:
                continue
            name, expression = condition.name, condition.expression

        node = StepNode(id=step.id, name=name, type=step.type, index=index)
        try:
            tree = parse_to_tree(expression)
        except ExpressionSyntaxError as e:
            node.parse_error = str(e)
            graph.nodes.append(node)
            graph.execution_order.append(step.id)
            continue

        node.inputs = extract_variables(tree)
        if isinstance(tree, Assignment):
            node.outputs = [tree.target]

        for input_name in node.inputs:
            producer = producers.get(input_name)
            if producer is not None:
                if producer not in node.dependencies:
                    node.dependencies.append(producer)
                graph.edges.append(DependencyEdge(producer, step.id, "formula"))
            elif input_name in variable_names or input_name == ITERATION_VARIABLE:
                graph.edges.append(DependencyEdge(input_name, step.id, "variable"))

            usage = graph.variable_usage.get(input_name)
            if usage is not None:
                bucket = usage.formulas if step.type == StepType.FORMULA else usage.conditions
                if step.id not in bucket:
                    bucket.append(step.id)

        for output in node.outputs:
            producers[output] = step.id

        graph.nodes.append(node)
        graph.execution_order.append(step.id)

    return graph


def validate_dependencies(algorithm: Algorithm) -> ValidationResult:
    """
    Check that every name a step reads is available when it runs.

    Reports:
    - Errors for names that are never defined
    - Errors for names only assigned by a later step
    - Errors for expressions that do not parse
    - Warnings for variables that nothing reads
    """
    result = ValidationResult()
    graph = analyze_dependencies(algorithm)

    variable_names = {v.name for v in algorithm.variables} | {v.id for v in algorithm.variables}
    assigned_by: dict[str, int] = {}
    for node in graph.nodes:
        for output in node.outputs:
            assigned_by.setdefault(output, node.index)

    used: set[str] = set()
    for node in graph.nodes:
        location = f"steps/{node.index + 1}"
        kind = node.type.value
        if node.parse_error:
            result.add_error(
                "INVALID_EXPRESSION",
                f"Invalid expression in {kind} '{node.name}': {node.parse_error}",
                location,
            )
            continue

        for name in node.inputs:
            used.add(name)
            if name in variable_names or name == ITERATION_VARIABLE:
                continue
            first_assignment = assigned_by.get(name)
            if first_assignment is None:
                result.add_error(
                    "UNDEFINED_VARIABLE",
                    f"Undefined variable '{name}' used in {kind} '{node.name}'",
                    location,
                )
            elif first_assignment >= node.index:
                result.add_error(
                    "USE_BEFORE_ASSIGNMENT",
                    f"Variable '{name}' is used in {kind} '{node.name}' before it is assigned",
                    location,
                )

    for variable in algorithm.variables:
        if variable.name not in used and variable.id not in used:
            result.add_warning(
                "UNUSED_VARIABLE",
                f"Variable '{variable.name}' is defined but never used",
                f"variables/{variable.name}",
            )

    return result
