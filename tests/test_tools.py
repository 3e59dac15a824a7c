"""
Tests for MCP tools.

Tests the MCP tool implementations for formula notation, algorithm
discovery and evaluation, and token generation.
"""

import json
from collections import defaultdict
from pathlib import Path

import pytest

from chuk_mcp_tokens.algorithms import AlgorithmLoader
from chuk_mcp_tokens.engine import TokenGenerator
from chuk_mcp_tokens.tools.algorithms import parse_json_object, register_algorithm_tools
from chuk_mcp_tokens.tools.expressions import register_expression_tools
from chuk_mcp_tokens.tools.generation import register_generation_tools

DENSITY_JSON = json.dumps(
    [
        {
            "id": "density",
            "modes": [{"id": "compact"}, {"id": "comfortable"}, {"id": "spacious"}],
        }
    ]
)


# Mock MCP server for testing tools
class MockMCPServer:
    """Mock MCP server that just stores registered tools."""

    def __init__(self, name: str):
        self.name = name
        self.tools: dict = {}

    def tool(self, func):
        """Decorator to register a tool."""
        self.tools[func.__name__] = func
        return func


@pytest.fixture
def loader(library_path: Path, temp_dir: Path) -> AlgorithmLoader:
    return AlgorithmLoader(library_path=library_path, project_path=temp_dir / "algorithms")


class TestExpressionTools:
    """Tests for formula notation tools."""

    @pytest.mark.asyncio
    async def test_parse_formula(self):
        """Parse formula tool."""
        tools = register_expression_tools(MockMCPServer("test"))

        result = await tools["tokens_parse_formula"](expression="size = base * pow(ratio, n)")
        data = json.loads(result)
        assert data["status"] == "success"
        assert data["ast"]["type"] == "assignment"
        assert data["ast"]["variableName"] == "size"
        assert data["variables"] == ["base", "ratio", "n"]
        assert data["complexity"]["level"] in ("low", "medium", "high")
        assert data["warnings"] == []

    @pytest.mark.asyncio
    async def test_parse_formula_error(self):
        """Syntax errors are reported, not raised."""
        tools = register_expression_tools(MockMCPServer("test"))

        data = json.loads(await tools["tokens_parse_formula"](expression="base *"))
        assert data["status"] == "error"
        assert data["message"]

    @pytest.mark.asyncio
    async def test_display_round_trip(self):
        """Display notation converts back to an equivalent expression."""
        tools = register_expression_tools(MockMCPServer("test"))

        to_display = json.loads(await tools["tokens_to_display"](expression="sqrt(area) / 2"))
        assert to_display["status"] == "success"

        back = json.loads(await tools["tokens_from_display"](display=to_display["display"]))
        assert back["status"] == "success"
        assert "sqrt" in back["expression"]
        assert "area" in back["expression"]

    @pytest.mark.asyncio
    async def test_from_display_error(self):
        """Malformed display notation is reported."""
        tools = register_expression_tools(MockMCPServer("test"))

        data = json.loads(await tools["tokens_from_display"](display="\\sqrt{"))
        assert data["status"] == "error"

    @pytest.mark.asyncio
    async def test_simplify_formula(self):
        """Simplify formula tool."""
        tools = register_expression_tools(MockMCPServer("test"))

        data = json.loads(await tools["tokens_simplify_formula"](expression="base * 1 + 2 * 3"))
        assert data["status"] == "success"
        assert data["original"] == "base * 1 + 2 * 3"
        assert data["simplified"] == "base + 6"


class TestAlgorithmTools:
    """Tests for algorithm tools."""

    @pytest.mark.asyncio
    async def test_list_algorithms(self, loader: AlgorithmLoader):
        """List algorithms tool."""
        tools = register_algorithm_tools(MockMCPServer("test"), loader)

        data = json.loads(await tools["tokens_list_algorithms"]())
        assert data["status"] == "success"
        names = {a["file_name"] for a in data["algorithms"]}
        assert {"type-scale", "spacing-scale"} <= names
        assert data["count"] == len(data["algorithms"])

    @pytest.mark.asyncio
    async def test_describe_algorithm(self, loader: AlgorithmLoader):
        """Describe algorithm tool."""
        tools = register_algorithm_tools(MockMCPServer("test"), loader)

        data = json.loads(await tools["tokens_describe_algorithm"](name="type-scale"))
        assert data["status"] == "success"
        assert data["algorithm"]["id"] == "type-scale"
        assert set(data["display"]) == {"size", "rounded"}
        assert all(data["display"].values())
        assert data["dependencies"]["execution_order"] == ["size", "rounded"]

    @pytest.mark.asyncio
    async def test_describe_unknown(self, loader: AlgorithmLoader):
        """Unknown algorithms are reported."""
        tools = register_algorithm_tools(MockMCPServer("test"), loader)

        data = json.loads(await tools["tokens_describe_algorithm"](name="nope"))
        assert data == {"status": "error", "message": "Algorithm not found: nope"}

    @pytest.mark.asyncio
    async def test_validate_algorithm(self, loader: AlgorithmLoader):
        """Validate algorithm tool."""
        tools = register_algorithm_tools(MockMCPServer("test"), loader)

        data = json.loads(await tools["tokens_validate_algorithm"](name="type-scale"))
        assert data["status"] == "success"
        assert data["valid"] is True
        assert data["errors"] == []

    @pytest.mark.asyncio
    async def test_evaluate_algorithm(self, loader: AlgorithmLoader):
        """Evaluate algorithm tool."""
        tools = register_algorithm_tools(MockMCPServer("test"), loader)

        data = json.loads(await tools["tokens_evaluate_algorithm"](name="type-scale", n=1))
        assert data["status"] == "success"
        assert data["final_result"] == 20
        assert data["results"]["size"] == 20.0
        assert [t["step_id"] for t in data["trace"]] == ["size", "rounded"]

    @pytest.mark.asyncio
    async def test_evaluate_with_modes(self, loader: AlgorithmLoader):
        """Mode context selects mode-based values."""
        tools = register_algorithm_tools(MockMCPServer("test"), loader)

        result = await tools["tokens_evaluate_algorithm"](
            name="spacing-scale", n=4, mode_context='{"density": "compact"}'
        )
        data = json.loads(result)
        assert data["status"] == "success"
        assert data["final_result"] == 48.0
        assert data["results"]["isLarge"] is True

    @pytest.mark.asyncio
    async def test_evaluate_with_context(self, loader: AlgorithmLoader):
        """Context overrides variable values."""
        tools = register_algorithm_tools(MockMCPServer("test"), loader)

        result = await tools["tokens_evaluate_algorithm"](
            name="type-scale", n=0, context='{"base": 10}'
        )
        assert json.loads(result)["final_result"] == 10

    @pytest.mark.asyncio
    async def test_evaluate_bad_json(self, loader: AlgorithmLoader):
        """Malformed JSON arguments are reported."""
        tools = register_algorithm_tools(MockMCPServer("test"), loader)

        for mode_context in ("[1, 2]", "{not json"):
            result = await tools["tokens_evaluate_algorithm"](
                name="type-scale", mode_context=mode_context
            )
            assert json.loads(result)["status"] == "error"

    @pytest.mark.asyncio
    async def test_copy_algorithm_to_project(self, loader: AlgorithmLoader):
        """Copy algorithm tool."""
        tools = register_algorithm_tools(MockMCPServer("test"), loader)

        data = json.loads(await tools["tokens_copy_algorithm_to_project"](name="type-scale"))
        assert data["status"] == "success"
        assert Path(data["path"]).exists()

        again = json.loads(await tools["tokens_copy_algorithm_to_project"](name="type-scale"))
        assert again["status"] == "error"
        assert "already exists" in again["message"]

        missing = json.loads(await tools["tokens_copy_algorithm_to_project"](name="nope"))
        assert missing["message"] == "Algorithm not found in library: nope"

    def test_parse_json_object(self):
        """Optional JSON object arguments."""
        assert parse_json_object(None, "context") == {}
        assert parse_json_object("", "context") == {}
        assert parse_json_object('{"a": 1}', "context") == {"a": 1}
        with pytest.raises(ValueError, match="context must be a JSON object"):
            parse_json_object("[]", "context")


class TestGenerationTools:
    """Tests for token generation tools."""

    @pytest.mark.asyncio
    async def test_mode_combinations(self, loader: AlgorithmLoader):
        """Mode combinations tool."""
        tools = register_generation_tools(MockMCPServer("test"), loader)

        result = await tools["tokens_mode_combinations"](
            name="spacing-scale", dimensions=DENSITY_JSON
        )
        data = json.loads(result)
        assert data["status"] == "success"
        assert data["dimensions"] == ["density"]
        assert data["count"] == 3

    @pytest.mark.asyncio
    async def test_mode_combinations_without_modes(self, loader: AlgorithmLoader):
        """Algorithms without mode-based variables have one combination."""
        tools = register_generation_tools(MockMCPServer("test"), loader)

        data = json.loads(await tools["tokens_mode_combinations"](name="type-scale"))
        assert data["combinations"] == [{}]
        assert data["count"] == 1

    @pytest.mark.asyncio
    async def test_mode_combinations_invalid_catalog(self, loader: AlgorithmLoader):
        """Malformed dimension catalogs are reported."""
        tools = register_generation_tools(MockMCPServer("test"), loader)

        result = await tools["tokens_mode_combinations"](name="spacing-scale", dimensions="[{}]")
        assert json.loads(result)["status"] == "error"

    @pytest.mark.asyncio
    async def test_mode_combinations_ceiling(self, loader: AlgorithmLoader):
        """The generator's ceiling applies."""
        generator = TokenGenerator(max_combinations=2)
        tools = register_generation_tools(MockMCPServer("test"), loader, generator)

        result = await tools["tokens_mode_combinations"](
            name="spacing-scale", dimensions=DENSITY_JSON
        )
        data = json.loads(result)
        assert data["status"] == "error"
        assert "3 combinations" in data["message"]

    @pytest.mark.asyncio
    async def test_generate(self, loader: AlgorithmLoader):
        """Generate tokens tool."""
        tools = register_generation_tools(MockMCPServer("test"), loader)

        data = json.loads(await tools["tokens_generate"](name="type-scale"))
        assert data["status"] == "success"
        assert data["count"] == 7
        assert data["errors"] == []
        assert data["tokens"][2]["displayName"] == "Medium"
        assert data["tokens"][2]["valuesByMode"][0]["value"] == 16
        assert data["newTaxonomies"][0]["name"] == "Font Size"

    @pytest.mark.asyncio
    async def test_generate_with_modes(self, loader: AlgorithmLoader):
        """Mode-based algorithms generate per combination."""
        tools = register_generation_tools(MockMCPServer("test"), loader)

        result = await tools["tokens_generate"](
            name="spacing-scale",
            dimensions=DENSITY_JSON,
            selected_modes='{"density": ["compact", "spacious"]}',
        )
        data = json.loads(result)
        assert data["count"] == 10
        mode_ids = {tuple(t["valuesByMode"][0]["modeIds"]) for t in data["tokens"]}
        assert mode_ids == {("compact",), ("spacious",)}

    @pytest.mark.asyncio
    async def test_generate_missing_modes(self, loader: AlgorithmLoader):
        """Missing dimensions are reported as generation errors."""
        tools = register_generation_tools(MockMCPServer("test"), loader)

        data = json.loads(await tools["tokens_generate"](name="spacing-scale"))
        assert data["status"] == "success"
        assert data["count"] == 0
        assert data["errors"] == ["No modes available for dimensions: density"]

    @pytest.mark.asyncio
    async def test_generate_existing_ids(self, loader: AlgorithmLoader):
        """Colliding token ids are skipped and reported."""
        counts: dict[str, int] = defaultdict(int)

        def ids(prefix: str) -> str:
            counts[prefix] += 1
            return f"{prefix}-{counts[prefix]}"

        tools = register_generation_tools(
            MockMCPServer("test"), loader, TokenGenerator(id_factory=ids)
        )

        result = await tools["tokens_generate"](
            name="type-scale", existing_token_ids='["token-1"]'
        )
        data = json.loads(result)
        assert data["count"] == 6
        assert data["errors"] == ['Token ID "token-1" already exists']

    @pytest.mark.asyncio
    async def test_generate_unknown(self, loader: AlgorithmLoader):
        """Unknown algorithms are reported."""
        tools = register_generation_tools(MockMCPServer("test"), loader)

        data = json.loads(await tools["tokens_generate"](name="nope"))
        assert data == {"status": "error", "message": "Algorithm not found: nope"}
