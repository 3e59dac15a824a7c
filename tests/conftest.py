"""
Pytest configuration and shared fixtures.
"""

import tempfile
from pathlib import Path

import pytest

from chuk_mcp_tokens.models import Algorithm, Dimension, Mode, Taxonomy, Term


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def library_path() -> Path:
    """Path to the built-in algorithm library."""
    return Path(__file__).parent.parent / "src" / "chuk_mcp_tokens" / "algorithms" / "library"


@pytest.fixture
def doubling_algorithm() -> Algorithm:
    """base=16, result = base * 2, over n = 0..2 with t-shirt names."""
    return Algorithm.model_validate(
        {
            "id": "doubling",
            "name": "Doubling",
            "variables": [{"id": "var-base", "name": "base", "default_value": "16"}],
            "formulas": [{"id": "double", "name": "double", "expression": "base * 2"}],
            "steps": [{"type": "formula", "id": "double"}],
            "token_generation": {
                "iteration_range": {"start": 0, "end": 2, "step": 1},
                "logical_mapping": {
                    "scale_type": "tshirt",
                    "default_value": "Medium",
                    "new_taxonomy_name": "Size",
                },
                "bulk_assignments": {"resolved_value_type_id": "dimension"},
            },
        }
    )


@pytest.fixture
def themed_algorithm() -> Algorithm:
    """A mode-based variable on the 'theme' dimension."""
    return Algorithm.model_validate(
        {
            "id": "themed",
            "name": "Themed",
            "variables": [
                {"id": "var-unit", "name": "unit", "default_value": "4"},
                {
                    "id": "var-weight",
                    "name": "weight",
                    "default_value": "1",
                    "mode_based": True,
                    "dimension_id": "theme",
                    "values_by_mode": {"light": "1", "dark": "2"},
                },
            ],
            "formulas": [{"id": "value", "name": "value", "expression": "unit * weight + n"}],
            "steps": [{"type": "formula", "id": "value"}],
            "token_generation": {
                "iteration_range": {"start": 0, "end": 1, "step": 1},
                "logical_mapping": {"scale_type": "numeric", "new_taxonomy_name": "Weight"},
            },
        }
    )


@pytest.fixture
def theme_dimension() -> Dimension:
    """Dimension with light and dark modes."""
    return Dimension(
        id="theme",
        display_name="Theme",
        modes=[
            Mode(id="light", name="Light", dimension_id="theme"),
            Mode(id="dark", name="Dark", dimension_id="theme"),
        ],
        default_mode_id="light",
    )


@pytest.fixture
def size_taxonomy() -> Taxonomy:
    """Existing taxonomy that already knows 'Medium'."""
    return Taxonomy(
        id="tax-size",
        name="Size",
        terms=[Term(id="term-medium", name="Medium")],
    )
