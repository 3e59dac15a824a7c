"""
Algorithm model - a parametric recipe for a family of tokens.

An Algorithm contains:
- Variables (typed inputs, optionally varying per design mode)
- Formulas (expressions producing named results)
- Conditions (boolean checks recorded alongside results)
- Steps (the ordered execution sequence)
- Token generation settings (iteration range, naming, bulk assignments)

Fields are snake_case; the camelCase keys used by design-system JSON
documents are accepted as aliases.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from chuk_mcp_tokens.constants import (
    DEFAULT_DECREASING_STEP,
    DEFAULT_EXTRA_PREFIX,
    DEFAULT_INCREASING_STEP,
    DEFAULT_ITERATION_END,
    DEFAULT_ITERATION_START,
    DEFAULT_ITERATION_STEP,
    ScaleType,
    StepType,
    TokenStatus,
    TokenTier,
    VariableType,
)
from chuk_mcp_tokens.models.catalog import TaxonomyRef


def _raw_text(value: Any) -> str:
    """Normalize a YAML/JSON scalar to the raw text form variables carry."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list | dict):
        return json.dumps(value)
    if value is None:
        return ""
    return str(value)


class Variable(BaseModel):
    """
    A typed input to an algorithm.

    Values are stored as raw text and parsed according to `type` when
    the algorithm runs. Mode-based variables look up their value by the
    active mode of `dimension_id`.
    """

    id: str = Field(..., description="Stable variable identifier")
    name: str = Field(..., description="Name used in expressions")
    type: VariableType = Field(VariableType.NUMBER, description="Declared value type")
    default_value: str = Field("", alias="defaultValue", description="Raw default value")
    description: str = Field("", description="What the variable controls")
    mode_based: bool = Field(False, alias="modeBased", description="Value varies by mode")
    dimension_id: str | None = Field(
        None, alias="dimensionId", description="Dimension whose mode selects the value"
    )
    values_by_mode: dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("values_by_mode", "valuesByMode", "modeValues"),
        description="Mode id to raw value",
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("default_value", mode="before")
    @classmethod
    def coerce_default(cls, v: Any) -> str:
        return _raw_text(v)

    @field_validator("values_by_mode", mode="before")
    @classmethod
    def coerce_mode_values(cls, v: Any) -> dict[str, str]:
        if v is None:
            return {}
        return {str(k): _raw_text(val) for k, val in dict(v).items()}

    def raw_value_for(self, mode_context: dict[str, str] | None) -> str:
        """
        Select the raw value for the active modes.

        Falls back to the default when the variable is not mode-based,
        has no dimension, or the active mode has no table entry.
        """
        if self.mode_based and self.dimension_id and mode_context:
            mode_id = mode_context.get(self.dimension_id)
            if mode_id is not None and mode_id in self.values_by_mode:
                return self.values_by_mode[mode_id]
        return self.default_value


class Formula(BaseModel):
    """
    A named expression.

    `expression` holds linear text, either `expr` or `target = expr`.
    `ast` and `display` are optional mirrors in tree and typeset form.
    """

    id: str = Field(..., description="Stable formula identifier")
    name: str = Field(..., description="Name under which the result is recorded")
    description: str = Field("", description="What the formula computes")
    expression: str = Field("", description="Linear expression text")
    ast: dict[str, Any] | None = Field(None, description="Serialized expression tree")
    display: str | None = Field(None, description="Display notation mirror")
    variable_ids: list[str] = Field(
        default_factory=list, alias="variableIds", description="Declared variable inputs"
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def unwrap_expressions(cls, data: Any) -> Any:
        """Accept the nested `expressions: {javascript, latex, ast}` document shape."""
        if not isinstance(data, dict) or "expressions" not in data:
            return data
        data = dict(data)
        nested = data.pop("expressions") or {}
        javascript = nested.get("javascript") or {}
        latex = nested.get("latex") or {}
        ast = nested.get("ast") or {}
        data.setdefault("expression", javascript.get("value", ""))
        if latex.get("value"):
            data.setdefault("display", latex["value"])
        if ast.get("root"):
            data.setdefault("ast", ast["root"])
        elif ast.get("type"):
            data.setdefault("ast", {k: v for k, v in ast.items() if k != "metadata"})
        return data

    @model_validator(mode="after")
    def fill_expression_from_tree(self) -> Formula:
        """Regenerate linear text when only the tree form was supplied."""
        if not self.expression.strip() and self.ast:
            from chuk_mcp_tokens.expressions import build_from_tree, node_from_dict

            object.__setattr__(self, "expression", build_from_tree(node_from_dict(self.ast)))
        return self


class Condition(BaseModel):
    """A named boolean expression; its value is recorded, never bound."""

    id: str = Field(..., description="Stable condition identifier")
    name: str = Field(..., description="Name under which the result is recorded")
    expression: str = Field("", description="Boolean expression text")
    variable_ids: list[str] = Field(default_factory=list, alias="variableIds")

    model_config = {"frozen": True, "populate_by_name": True}


class Step(BaseModel):
    """Reference to a formula or condition in execution order."""

    type: StepType = Field(..., description="Formula or condition")
    id: str = Field(..., description="Id of the referenced formula or condition")
    name: str = Field("", description="Display name")

    model_config = {"frozen": True}


class IterationRange(BaseModel):
    """Inclusive integer range the algorithm is evaluated over."""

    start: int = Field(DEFAULT_ITERATION_START, description="First iteration value")
    end: int = Field(DEFAULT_ITERATION_END, description="Last iteration value (inclusive)")
    step: int = Field(DEFAULT_ITERATION_STEP, gt=0, description="Increment between values")

    model_config = {"frozen": True}

    def values(self) -> list[int]:
        """All iteration values, start to end inclusive."""
        if self.end < self.start:
            return []
        return list(range(self.start, self.end + 1, self.step))

    @property
    def count(self) -> int:
        if self.end < self.start:
            return 0
        return (self.end - self.start) // self.step + 1


class LogicalMapping(BaseModel):
    """How iteration values are named and filed under a taxonomy."""

    scale_type: ScaleType = Field(ScaleType.NUMERIC, alias="scaleType")
    default_value: str = Field("100", alias="defaultValue", description="Label for n = 0")
    increasing_step: float = Field(DEFAULT_INCREASING_STEP, alias="increasingStep")
    decreasing_step: float = Field(DEFAULT_DECREASING_STEP, alias="decreasingStep")
    extra_prefix: str = Field(DEFAULT_EXTRA_PREFIX, alias="extraPrefix")
    taxonomy_id: str | None = Field(None, alias="taxonomyId")
    new_taxonomy_name: str | None = Field(None, alias="newTaxonomyName")

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("default_value", mode="before")
    @classmethod
    def coerce_default(cls, v: Any) -> str:
        return _raw_text(v)


class BulkAssignments(BaseModel):
    """Fields copied onto every generated token."""

    resolved_value_type_id: str = Field("", alias="resolvedValueTypeId")
    collection_id: str | None = Field(
        None, validation_alias=AliasChoices("collection_id", "collectionId", "tokenCollectionId")
    )
    taxonomies: list[TaxonomyRef] = Field(default_factory=list)
    token_tier: TokenTier = Field(TokenTier.PRIMITIVE, alias="tokenTier")
    private: bool = False
    status: TokenStatus = TokenStatus.STABLE
    themeable: bool = False

    model_config = {"frozen": True, "populate_by_name": True}


class TokenGeneration(BaseModel):
    """Token generation settings for an algorithm."""

    enabled: bool = True
    iteration_range: IterationRange = Field(
        default_factory=IterationRange, alias="iterationRange"
    )
    logical_mapping: LogicalMapping = Field(
        default_factory=LogicalMapping, alias="logicalMapping"
    )
    bulk_assignments: BulkAssignments = Field(
        default_factory=BulkAssignments, alias="bulkAssignments"
    )

    model_config = {"frozen": True, "populate_by_name": True}


class Algorithm(BaseModel):
    """
    A complete algorithm definition.

    This is the central data structure handed to the evaluator and
    the token generator.
    """

    id: str = Field(..., description="Stable algorithm identifier")
    name: str = Field(..., description="Human readable name")
    description: str = Field("", description="What the algorithm produces")
    resolved_value_type_id: str = Field("", alias="resolvedValueTypeId")

    variables: list[Variable] = Field(default_factory=list)
    formulas: list[Formula] = Field(default_factory=list)
    conditions: list[Condition] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)

    token_generation: TokenGeneration | None = Field(None, alias="tokenGeneration")

    model_config = {"populate_by_name": True}

    def get_formula(self, formula_id: str) -> Formula | None:
        """Find a formula by id."""
        for formula in self.formulas:
            if formula.id == formula_id:
                return formula
        return None

    def get_condition(self, condition_id: str) -> Condition | None:
        """Find a condition by id."""
        for condition in self.conditions:
            if condition.id == condition_id:
                return condition
        return None

    def get_variable(self, name: str) -> Variable | None:
        """Find a variable by name or id."""
        for variable in self.variables:
            if variable.name == name or variable.id == name:
                return variable
        return None

    def to_yaml_dict(self) -> dict[str, Any]:
        """
        Convert to a YAML-friendly dict.

        This produces the canonical YAML format for algorithm files.
        """
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }
        if self.resolved_value_type_id:
            result["resolved_value_type_id"] = self.resolved_value_type_id

        result["variables"] = [
            v.model_dump(mode="json", exclude_defaults=True)
            | {"id": v.id, "name": v.name, "type": v.type.value}
            for v in self.variables
        ]
        result["formulas"] = [
            f.model_dump(mode="json", exclude_defaults=True) | {"id": f.id, "name": f.name}
            for f in self.formulas
        ]
        if self.conditions:
            result["conditions"] = [
                c.model_dump(mode="json", exclude_defaults=True) | {"id": c.id, "name": c.name}
                for c in self.conditions
            ]
        result["steps"] = [
            {"type": s.type.value, "id": s.id} | ({"name": s.name} if s.name else {})
            for s in self.steps
        ]
        if self.token_generation:
            result["token_generation"] = self.token_generation.model_dump(mode="json")

        return result

    @classmethod
    def from_yaml_dict(cls, data: dict[str, Any]) -> Algorithm:
        """
        Create an Algorithm from a YAML-parsed dict.

        Steps default to one formula step per formula, in declaration
        order, when the file does not list them.
        """
        data = dict(data)
        if "steps" not in data:
            data["steps"] = [
                {"type": StepType.FORMULA.value, "id": f["id"], "name": f.get("name", "")}
                for f in data.get("formulas", [])
            ]
        return cls.model_validate(data)
