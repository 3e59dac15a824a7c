"""
Tests for the pydantic models.

Tests cover:
- Field aliases used by design-system documents
- Formula document shapes
- IterationRange
- Variable value selection
- YAML dict conversion
"""

import pytest
from pydantic import ValidationError

from chuk_mcp_tokens.constants import ScaleType, StepType, TokenTier, VariableType
from chuk_mcp_tokens.models import (
    Algorithm,
    Formula,
    GenerationResult,
    IterationRange,
    TokenGeneration,
    Variable,
)


class TestVariable:
    """Tests for Variable."""

    def test_document_aliases(self):
        """camelCase keys are accepted."""
        variable = Variable.model_validate(
            {
                "id": "var-gap",
                "name": "gap",
                "defaultValue": 8,
                "modeBased": True,
                "dimensionId": "density",
                "modeValues": {"compact": 4, "spacious": 12},
            }
        )
        assert variable.default_value == "8"
        assert variable.mode_based is True
        assert variable.values_by_mode == {"compact": "4", "spacious": "12"}
        assert variable.type == VariableType.NUMBER

    def test_raw_text_coercion(self):
        """Scalars are normalized to raw text."""
        assert Variable(id="a", name="a", default_value=True).default_value == "true"
        assert Variable(id="a", name="a", default_value=[1, 2]).default_value == "[1, 2]"
        assert Variable(id="a", name="a", default_value=None).default_value == ""

    def test_raw_value_for(self):
        """Mode tables are consulted only for mode-based variables."""
        variable = Variable(
            id="v",
            name="v",
            default_value="1",
            mode_based=True,
            dimension_id="theme",
            values_by_mode={"dark": "2"},
        )
        assert variable.raw_value_for({"theme": "dark"}) == "2"
        assert variable.raw_value_for({"theme": "light"}) == "1"
        assert variable.raw_value_for(None) == "1"

    def test_not_mode_based_ignores_table(self):
        """A table on a plain variable is ignored."""
        variable = Variable(
            id="v", name="v", default_value="1", dimension_id="theme", values_by_mode={"dark": "2"}
        )
        assert variable.raw_value_for({"theme": "dark"}) == "1"

    def test_frozen(self):
        """Variables are immutable."""
        variable = Variable(id="v", name="v")
        with pytest.raises(ValidationError):
            variable.name = "w"


class TestFormula:
    """Tests for Formula."""

    def test_nested_expressions_shape(self):
        """The nested expressions document shape is unwrapped."""
        formula = Formula.model_validate(
            {
                "id": "f",
                "name": "f",
                "expressions": {
                    "javascript": {"value": "base * 2"},
                    "latex": {"value": "\\mathit{base} \\times 2"},
                    "ast": {
                        "root": {
                            "type": "binary",
                            "operator": "*",
                            "left": {"type": "variable", "variableName": "base"},
                            "right": {"type": "literal", "value": 2},
                        }
                    },
                },
            }
        )
        assert formula.expression == "base * 2"
        assert formula.display == "\\mathit{base} \\times 2"
        assert formula.ast["operator"] == "*"

    def test_tree_only(self):
        """Linear text is regenerated from a tree alone."""
        formula = Formula.model_validate(
            {
                "id": "f",
                "name": "f",
                "ast": {
                    "type": "function",
                    "functionName": "pow",
                    "arguments": [
                        {"type": "variable", "variableName": "ratio"},
                        {"type": "variable", "variableName": "n"},
                    ],
                },
            }
        )
        assert formula.expression == "pow(ratio, n)"


class TestIterationRange:
    """Tests for IterationRange."""

    def test_defaults(self):
        """The default range is -2..8."""
        iteration_range = IterationRange()
        assert iteration_range.values()[0] == -2
        assert iteration_range.values()[-1] == 8
        assert iteration_range.count == 11

    def test_inclusive_with_step(self):
        """End is included when reachable."""
        iteration_range = IterationRange(start=0, end=6, step=3)
        assert iteration_range.values() == [0, 3, 6]
        assert iteration_range.count == 3

    def test_empty(self):
        """A backwards range is empty."""
        iteration_range = IterationRange(start=3, end=1)
        assert iteration_range.values() == []
        assert iteration_range.count == 0

    def test_step_must_be_positive(self):
        """Zero and negative steps are rejected."""
        with pytest.raises(ValidationError):
            IterationRange(step=0)


class TestTokenGeneration:
    """Tests for token generation settings."""

    def test_document_aliases(self):
        """camelCase settings are accepted."""
        generation = TokenGeneration.model_validate(
            {
                "iterationRange": {"start": 1, "end": 3},
                "logicalMapping": {"scaleType": "tshirt", "taxonomyId": "tax-1"},
                "bulkAssignments": {"tokenCollectionId": "col-1", "tokenTier": "SEMANTIC"},
            }
        )
        assert generation.iteration_range.values() == [1, 2, 3]
        assert generation.logical_mapping.scale_type == ScaleType.TSHIRT
        assert generation.logical_mapping.taxonomy_id == "tax-1"
        assert generation.bulk_assignments.collection_id == "col-1"
        assert generation.bulk_assignments.token_tier == TokenTier.SEMANTIC


class TestAlgorithm:
    """Tests for Algorithm."""

    def test_lookups(self, doubling_algorithm: Algorithm):
        """Formulas and variables are found by id or name."""
        assert doubling_algorithm.get_formula("double").expression == "base * 2"
        assert doubling_algorithm.get_formula("missing") is None
        assert doubling_algorithm.get_condition("missing") is None
        assert doubling_algorithm.get_variable("base").id == "var-base"
        assert doubling_algorithm.get_variable("var-base").name == "base"

    def test_default_steps(self):
        """Files without steps run each formula in order."""
        algorithm = Algorithm.from_yaml_dict(
            {
                "id": "a",
                "name": "A",
                "formulas": [
                    {"id": "one", "name": "one", "expression": "x = 1"},
                    {"id": "two", "name": "two", "expression": "x + 1"},
                ],
            }
        )
        assert [(s.type, s.id) for s in algorithm.steps] == [
            (StepType.FORMULA, "one"),
            (StepType.FORMULA, "two"),
        ]

    def test_yaml_dict_round_trip(self, themed_algorithm: Algorithm):
        """to_yaml_dict output loads back to the same algorithm."""
        data = themed_algorithm.to_yaml_dict()
        assert data["variables"][1]["values_by_mode"] == {"light": "1", "dark": "2"}
        assert data["steps"] == [{"type": "formula", "id": "value"}]
        restored = Algorithm.from_yaml_dict(data)
        assert restored.model_dump() == themed_algorithm.model_dump()

    def test_yaml_dict_omits_empty_sections(self, doubling_algorithm: Algorithm):
        """Empty conditions are left out."""
        data = doubling_algorithm.to_yaml_dict()
        assert "conditions" not in data
        assert data["token_generation"]["logical_mapping"]["scale_type"] == "tshirt"


class TestGenerationResult:
    """Tests for GenerationResult."""

    def test_empty(self):
        """An empty result is a success."""
        result = GenerationResult()
        assert result.success
        assert result.to_dict() == {
            "tokens": [],
            "errors": [],
            "newTaxonomies": [],
            "updatedTaxonomies": [],
        }

    def test_errors(self):
        """Any error means not a success."""
        assert not GenerationResult(errors=["boom"]).success
