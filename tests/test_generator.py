"""
Tests for token generation.

Tests cover:
- End-to-end generation with a new taxonomy
- Existing taxonomies, copied or modified in place
- Mode-based expansion
- Pre-flight errors and per-cell error isolation
- Result coercion
"""

from collections import defaultdict

import pytest

from chuk_mcp_tokens.engine import TokenGenerator, coerce_number, generate_tokens
from chuk_mcp_tokens.models import Algorithm, Dimension, Taxonomy


def counting_ids():
    """Deterministic id factory: token-1, token-2, term-1, ..."""
    counts: dict[str, int] = defaultdict(int)

    def factory(prefix: str) -> str:
        counts[prefix] += 1
        return f"{prefix}-{counts[prefix]}"

    return factory


def with_changes(algorithm: Algorithm, mapping=None, **fields) -> Algorithm:
    """Copy an algorithm, updating top-level fields and the logical mapping."""
    data = algorithm.model_dump()
    data.update(fields)
    if mapping:
        data["token_generation"]["logical_mapping"].update(mapping)
    return Algorithm.model_validate(data)


class TestNewTaxonomy:
    """Tests for generation into a newly created taxonomy."""

    def test_tokens(self, doubling_algorithm: Algorithm):
        """One token per iteration value, named by the scale."""
        result = TokenGenerator(id_factory=counting_ids()).generate(doubling_algorithm)
        assert result.success
        assert [t.display_name for t in result.tokens] == ["Medium", "Large", "X-Large"]
        assert [t.value for t in result.tokens] == [32, 32, 32]
        assert [t.id for t in result.tokens] == ["token-1", "token-2", "token-3"]

    def test_token_fields(self, doubling_algorithm: Algorithm):
        """Bulk assignments and provenance are copied onto tokens."""
        result = TokenGenerator(id_factory=counting_ids()).generate(doubling_algorithm)
        token = result.tokens[1]
        assert token.algorithm_id == "doubling"
        assert token.iteration_value == 1
        assert token.generated_by_algorithm is True
        assert token.resolved_value_type_id == "dimension"
        assert token.description == 'Generated by algorithm "Doubling" with n=1'
        assert token.mode_ids == []

    def test_new_taxonomy_seeded(self, doubling_algorithm: Algorithm):
        """The new taxonomy holds one term per scale name."""
        result = TokenGenerator(id_factory=counting_ids()).generate(doubling_algorithm)
        assert len(result.new_taxonomies) == 1
        taxonomy = result.new_taxonomies[0]
        assert taxonomy.id == "taxonomy-1"
        assert taxonomy.name == "Size"
        assert [t.name for t in taxonomy.terms] == ["Medium", "Large", "X-Large"]
        assert taxonomy.resolved_value_type_ids == ["dimension"]
        assert result.updated_taxonomies == []

    def test_tokens_reference_terms(self, doubling_algorithm: Algorithm):
        """Each token is classified under its scale term."""
        result = TokenGenerator(id_factory=counting_ids()).generate(doubling_algorithm)
        taxonomy = result.new_taxonomies[0]
        for token in result.tokens:
            (ref,) = token.taxonomies
            assert ref.taxonomy_id == taxonomy.id
            assert taxonomy.get_term(ref.term_id).name == token.display_name

    def test_duplicate_names_share_a_term(self, doubling_algorithm: Algorithm):
        """Scale names that collide are seeded once."""
        algorithm = with_changes(
            doubling_algorithm,
            mapping={"scale_type": "numeric", "default_value": "100", "increasing_step": 0},
        )
        result = TokenGenerator(id_factory=counting_ids()).generate(algorithm)
        assert len(result.tokens) == 3
        assert [t.name for t in result.new_taxonomies[0].terms] == ["100"]

    def test_convenience_function(self, doubling_algorithm: Algorithm):
        """generate_tokens uses random ids."""
        result = generate_tokens(doubling_algorithm)
        assert len(result.tokens) == 3
        assert len({t.id for t in result.tokens}) == 3
        assert all(t.id.startswith("token-") for t in result.tokens)

    def test_to_dict_uses_document_names(self, doubling_algorithm: Algorithm):
        """Serialized results use camelCase field names."""
        data = TokenGenerator(id_factory=counting_ids()).generate(doubling_algorithm).to_dict()
        assert set(data) == {"tokens", "errors", "newTaxonomies", "updatedTaxonomies"}
        token = data["tokens"][0]
        assert token["displayName"] == "Medium"
        assert token["valuesByMode"] == [{"modeIds": [], "value": 32}]


class TestExistingTaxonomy:
    """Tests for generation into a caller-owned taxonomy."""

    def test_caller_taxonomy_untouched_by_default(
        self, doubling_algorithm: Algorithm, size_taxonomy: Taxonomy
    ):
        """Without in-place mode the caller's terms are not changed."""
        algorithm = with_changes(doubling_algorithm, mapping={"taxonomy_id": "tax-size"})
        result = TokenGenerator(id_factory=counting_ids()).generate(
            algorithm, taxonomies=[size_taxonomy]
        )
        assert len(result.tokens) == 3
        assert [t.name for t in size_taxonomy.terms] == ["Medium"]
        assert result.new_taxonomies == []
        assert result.updated_taxonomies == []

    def test_existing_term_reused(self, doubling_algorithm: Algorithm, size_taxonomy: Taxonomy):
        """Terms are matched by exact name."""
        algorithm = with_changes(doubling_algorithm, mapping={"taxonomy_id": "tax-size"})
        result = TokenGenerator(id_factory=counting_ids()).generate(
            algorithm, taxonomies=[size_taxonomy]
        )
        assert result.tokens[0].taxonomies[0].term_id == "term-medium"
        assert result.tokens[1].taxonomies[0].term_id == "term-1"
        assert [t.display_name for t in result.tokens] == ["Medium", "Large", "X-Large"]

    def test_in_place(self, doubling_algorithm: Algorithm, size_taxonomy: Taxonomy):
        """In-place mode appends missing terms and reports the taxonomy."""
        algorithm = with_changes(doubling_algorithm, mapping={"taxonomy_id": "tax-size"})
        result = TokenGenerator(id_factory=counting_ids()).generate(
            algorithm, taxonomies=[size_taxonomy], modify_taxonomies_in_place=True
        )
        assert [t.name for t in size_taxonomy.terms] == ["Medium", "Large", "X-Large"]
        assert result.updated_taxonomies == [size_taxonomy]

    def test_taxonomy_not_found(self, doubling_algorithm: Algorithm):
        """A missing taxonomy aborts generation."""
        algorithm = with_changes(doubling_algorithm, mapping={"taxonomy_id": "nope"})
        result = TokenGenerator().generate(algorithm)
        assert result.tokens == []
        assert result.errors == ["Selected taxonomy with ID nope not found"]


class TestModes:
    """Tests for mode-based generation."""

    def test_one_token_per_cell(self, themed_algorithm: Algorithm, theme_dimension: Dimension):
        """Each iteration value yields one token per mode."""
        result = TokenGenerator(id_factory=counting_ids()).generate(
            themed_algorithm, dimensions=[theme_dimension]
        )
        assert result.success
        assert [(t.iteration_value, t.mode_ids, t.value) for t in result.tokens] == [
            (0, ["light"], 4),
            (0, ["dark"], 8),
            (1, ["light"], 5),
            (1, ["dark"], 9),
        ]
        assert [t.display_name for t in result.tokens] == ["100", "100", "200", "200"]

    def test_selected_modes(self, themed_algorithm: Algorithm, theme_dimension: Dimension):
        """A selection restricts the modes generated."""
        result = TokenGenerator().generate(
            themed_algorithm, dimensions=[theme_dimension], selected_modes={"theme": ["dark"]}
        )
        assert [t.value for t in result.tokens] == [8, 9]

    def test_no_modes(self, themed_algorithm: Algorithm):
        """A referenced dimension with no modes aborts generation."""
        result = TokenGenerator().generate(themed_algorithm)
        assert result.tokens == []
        assert result.errors == ["No modes available for dimensions: theme"]

    def test_too_many_combinations(
        self, themed_algorithm: Algorithm, theme_dimension: Dimension
    ):
        """Exceeding the ceiling aborts generation."""
        result = TokenGenerator(max_combinations=1).generate(
            themed_algorithm, dimensions=[theme_dimension]
        )
        assert result.tokens == []
        assert result.errors[0].startswith("Mode expansion would produce 2 combinations")


class TestErrors:
    """Tests for pre-flight and per-cell errors."""

    def test_disabled(self, doubling_algorithm: Algorithm):
        """Disabled generation produces nothing."""
        data = doubling_algorithm.model_dump()
        data["token_generation"]["enabled"] = False
        result = TokenGenerator().generate(Algorithm.model_validate(data))
        assert result.tokens == []
        assert result.errors == []

    def test_no_token_generation(self, doubling_algorithm: Algorithm):
        """Algorithms without settings produce nothing."""
        algorithm = with_changes(doubling_algorithm, token_generation=None)
        assert TokenGenerator().generate(algorithm).tokens == []

    def test_no_formulas(self, doubling_algorithm: Algorithm):
        """At least one formula is required."""
        algorithm = with_changes(doubling_algorithm, formulas=[], steps=[])
        result = TokenGenerator().generate(algorithm)
        assert result.errors == [
            "Algorithm must have at least one formula for token generation"
        ]

    def test_no_taxonomy_target(self, doubling_algorithm: Algorithm):
        """A taxonomy id or a new taxonomy name is required."""
        algorithm = with_changes(doubling_algorithm, mapping={"new_taxonomy_name": None})
        result = TokenGenerator().generate(algorithm)
        assert result.errors == [
            "Must select an existing taxonomy or provide a name for a new taxonomy"
        ]

    def test_structural_errors(self, doubling_algorithm: Algorithm):
        """Unresolved steps are reported without generating."""
        algorithm = with_changes(doubling_algorithm, steps=[{"type": "formula", "id": "nope"}])
        result = TokenGenerator().generate(algorithm)
        assert result.tokens == []
        assert result.errors == ["Step 1: Referenced formula 'nope' not found"]

    def test_failing_cell_isolated(self, doubling_algorithm: Algorithm):
        """A failing iteration is recorded and the rest still generate."""
        algorithm = with_changes(
            doubling_algorithm,
            formulas=[{"id": "double", "name": "double", "expression": "base / n"}],
        )
        result = TokenGenerator(id_factory=counting_ids()).generate(algorithm)
        assert [t.iteration_value for t in result.tokens] == [1, 2]
        assert [t.value for t in result.tokens] == [16.0, 8.0]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Error generating token for iteration 0:")

    def test_numeric_overflow_isolated(self, doubling_algorithm: Algorithm):
        """Overflowing arithmetic is a per-cell error, not a crash."""
        algorithm = with_changes(
            doubling_algorithm,
            variables=[{"id": "var-base", "name": "base", "default_value": "1" + "0" * 400}],
            formulas=[{"id": "double", "name": "double", "expression": "base / 2"}],
        )
        result = TokenGenerator().generate(algorithm)
        assert result.tokens == []
        assert len(result.errors) == 3
        assert all(e.startswith("Error generating token for iteration") for e in result.errors)
        assert "overflow" in result.errors[0]

    def test_deeply_nested_formula_isolated(self, doubling_algorithm: Algorithm):
        """A formula nested too deeply to parse fails each cell."""
        expression = "(" * 500 + "base" + ")" * 500
        algorithm = with_changes(
            doubling_algorithm,
            formulas=[{"id": "double", "name": "double", "expression": expression}],
        )
        result = TokenGenerator().generate(algorithm)
        assert result.tokens == []
        assert len(result.errors) == 3
        assert "nested too deeply" in result.errors[0]

    def test_non_numeric_result(self, doubling_algorithm: Algorithm):
        """Results that are not numbers are per-cell errors."""
        algorithm = with_changes(
            doubling_algorithm,
            formulas=[{"id": "double", "name": "double", "expression": '"wide"'}],
        )
        result = TokenGenerator().generate(algorithm)
        assert result.tokens == []
        assert len(result.errors) == 3
        assert "Algorithm result is not a number" in result.errors[0]

    def test_existing_token_id(self, doubling_algorithm: Algorithm):
        """A colliding id skips exactly that cell."""
        result = TokenGenerator(id_factory=counting_ids()).generate(
            doubling_algorithm, existing_token_ids={"token-2"}
        )
        assert [t.id for t in result.tokens] == ["token-1", "token-3"]
        assert result.errors == ['Token ID "token-2" already exists']


class TestCoerceNumber:
    """Tests for coerce_number."""

    def test_numbers_pass_through(self):
        """Ints and finite floats are returned unchanged."""
        assert coerce_number(4) == 4
        assert coerce_number(1.5) == 1.5

    def test_numeric_strings(self):
        """Numeric strings are parsed."""
        assert coerce_number(" 12 ") == 12
        assert isinstance(coerce_number("12"), int)
        assert coerce_number("1.25") == 1.25

    @pytest.mark.parametrize("value", [True, "wide", float("inf"), "nan", None, [1]])
    def test_rejected(self, value):
        """Everything else is rejected."""
        with pytest.raises(ValueError, match="not a number"):
            coerce_number(value)
