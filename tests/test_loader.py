"""
Tests for the algorithm loader.

Tests cover:
- Listing and loading the built-in library
- Project overrides and lookup by id
- Skipping invalid files
- Saving and copying to the project
"""

from pathlib import Path

import pytest

from chuk_mcp_tokens.algorithms import AlgorithmLoader
from chuk_mcp_tokens.constants import ScaleType
from chuk_mcp_tokens.engine import AlgorithmExecutor, TokenGenerator
from chuk_mcp_tokens.models import Algorithm, Dimension, Mode

CUSTOM_TYPE_SCALE = """\
id: type-scale
name: Custom Type Scale
variables:
  - id: var-base
    name: base
    default_value: "10"
formulas:
  - id: size
    name: size
    expression: base + n
"""


@pytest.fixture
def loader(library_path: Path, temp_dir: Path) -> AlgorithmLoader:
    return AlgorithmLoader(library_path=library_path, project_path=temp_dir / "algorithms")


class TestLibrary:
    """Tests for the built-in library."""

    def test_list_algorithms(self, loader: AlgorithmLoader):
        """Both shipped algorithms are listed."""
        listing = {m.file_name: m for m in loader.list_algorithms()}
        assert {"type-scale", "spacing-scale"} <= set(listing)
        assert listing["type-scale"].scale_type == ScaleType.TSHIRT
        assert listing["type-scale"].formula_count == 2
        assert listing["spacing-scale"].mode_based is True

    def test_default_library_path(self):
        """The packaged library is used by default."""
        assert AlgorithmLoader().get_algorithm("type-scale") is not None

    def test_get_unknown(self, loader: AlgorithmLoader):
        """Unknown names return None."""
        assert loader.get_algorithm("nope") is None

    def test_type_scale_values(self, loader: AlgorithmLoader):
        """The type scale rounds each modular step."""
        executor = AlgorithmExecutor(loader.get_algorithm("type-scale"))
        sizes = [executor.execute(n).final_result for n in range(-2, 5)]
        assert sizes == [10, 13, 16, 20, 25, 31, 39]

    def test_type_scale_tokens(self, loader: AlgorithmLoader):
        """Generation names the type scale in t-shirt sizes."""
        result = TokenGenerator().generate(loader.get_algorithm("type-scale"))
        assert result.success
        assert [t.display_name for t in result.tokens] == [
            "X-Small",
            "Small",
            "Medium",
            "Large",
            "X-Large",
            "XX-Large",
            "XXX-Large",
        ]
        assert result.new_taxonomies[0].name == "Font Size"

    def test_spacing_scale_density(self, loader: AlgorithmLoader):
        """Spacing varies by density mode."""
        density = Dimension(
            id="density",
            modes=[Mode(id=m) for m in ("compact", "comfortable", "spacious")],
        )
        result = TokenGenerator().generate(
            loader.get_algorithm("spacing-scale"), dimensions=[density]
        )
        assert len(result.tokens) == 15
        compact = [t.value for t in result.tokens if t.mode_ids == ["compact"]]
        assert compact == [3.0, 6.0, 12.0, 24.0, 48.0]


class TestProject:
    """Tests for project algorithms."""

    def test_project_overrides_library(self, loader: AlgorithmLoader):
        """A project file with the same stem wins."""
        loader.project_path.mkdir(parents=True)
        (loader.project_path / "type-scale.yaml").write_text(CUSTOM_TYPE_SCALE)
        assert loader.get_algorithm("type-scale").name == "Custom Type Scale"
        names = [m.name for m in loader.list_algorithms() if m.file_name == "type-scale"]
        assert names == ["Custom Type Scale"]

    def test_lookup_by_id(self, loader: AlgorithmLoader):
        """Algorithms can be addressed by id as well as file stem."""
        loader.project_path.mkdir(parents=True)
        (loader.project_path / "mine.yaml").write_text(
            CUSTOM_TYPE_SCALE.replace("id: type-scale", "id: custom-id")
        )
        assert loader.get_algorithm("custom-id").name == "Custom Type Scale"

    def test_invalid_files_skipped(self, loader: AlgorithmLoader):
        """Files that fail to load are skipped, not fatal."""
        loader.project_path.mkdir(parents=True)
        (loader.project_path / "list.yaml").write_text("- not a mapping\n")
        (loader.project_path / "incomplete.yaml").write_text("id: incomplete\n")
        (loader.project_path / "garbled.yaml").write_text("id: [unclosed\n")
        stems = {m.file_name for m in loader.list_algorithms()}
        assert stems == {"type-scale", "spacing-scale"}
        assert loader.get_algorithm("incomplete") is None

    def test_save_to_project(self, loader: AlgorithmLoader, doubling_algorithm: Algorithm):
        """Saved algorithms load back unchanged."""
        path = loader.save_to_project(doubling_algorithm)
        assert path.name == "doubling.yaml"
        loaded = loader.get_algorithm("doubling")
        assert loaded.model_dump() == doubling_algorithm.model_dump()

    def test_save_without_project(self, library_path: Path, doubling_algorithm: Algorithm):
        """Saving requires a project directory."""
        with pytest.raises(ValueError, match="No project path"):
            AlgorithmLoader(library_path=library_path).save_to_project(doubling_algorithm)

    def test_copy_to_project(self, loader: AlgorithmLoader):
        """Library algorithms can be copied for customization."""
        path = loader.copy_to_project("type-scale")
        assert path == loader.project_path / "type-scale.yaml"
        assert path.read_text() == (loader.library_path / "type-scale.yaml").read_text()

    def test_copy_twice(self, loader: AlgorithmLoader):
        """Copying over an existing project file is refused."""
        loader.copy_to_project("type-scale")
        with pytest.raises(ValueError, match="already exists"):
            loader.copy_to_project("type-scale")

    def test_copy_unknown(self, loader: AlgorithmLoader):
        """Unknown library algorithms are not copied."""
        assert loader.copy_to_project("nope") is None

    def test_clear_cache(self, loader: AlgorithmLoader):
        """Cached algorithms are reloaded after clear_cache."""
        assert loader.get_algorithm("type-scale").name == "Modular Type Scale"
        loader.project_path.mkdir(parents=True)
        (loader.project_path / "type-scale.yaml").write_text(CUSTOM_TYPE_SCALE)
        assert loader.get_algorithm("type-scale").name == "Modular Type Scale"
        loader.clear_cache()
        assert loader.get_algorithm("type-scale").name == "Custom Type Scale"
