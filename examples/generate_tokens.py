#!/usr/bin/env python3
"""
Example: Generating Design Tokens from Algorithms.

This loads the built-in algorithms, runs them for a few iteration
values and expands them into tokens, including a density-aware spacing
scale that produces one value per density mode.

Usage:
    python examples/generate_tokens.py
"""

import tempfile
from pathlib import Path

from chuk_mcp_tokens.algorithms import AlgorithmLoader
from chuk_mcp_tokens.engine import AlgorithmExecutor, TokenGenerator, validate_dependencies
from chuk_mcp_tokens.models import Dimension, Mode


def main() -> None:
    """Demonstrate algorithm evaluation and token generation."""
    print("CHUK Tokens Generation Demo")
    print("=" * 40)
    print()

    library_path = Path(__file__).parent.parent / "src/chuk_mcp_tokens/algorithms/library"

    with tempfile.TemporaryDirectory() as tmp:
        loader = AlgorithmLoader(library_path=library_path, project_path=Path(tmp))

        print("Available algorithms:")
        for meta in loader.list_algorithms():
            modes = " (mode-based)" if meta.mode_based else ""
            print(f"  {meta.file_name}: {meta.name}{modes}")
        print()

        type_scale = loader.get_algorithm("type-scale")
        if not type_scale:
            print("Failed to load type-scale")
            return

        # Data-flow check before running
        issues = validate_dependencies(type_scale)
        print(f"Dependency check: {issues}")
        print()

        # Step-by-step evaluation
        executor = AlgorithmExecutor(type_scale)
        print("Type scale trace for n=2:")
        outcome = executor.execute(2)
        for record in outcome.trace:
            print(f"  {record.step_name}: {record.value}")
        print(f"  final: {outcome.final_result}")
        print()

        # Full expansion into tokens
        result = TokenGenerator().generate(type_scale)
        print(f"Generated {len(result.tokens)} type tokens:")
        for token in result.tokens:
            print(f"  {token.display_name:>10} = {token.value}px")
        for taxonomy in result.new_taxonomies:
            terms = ", ".join(t.name for t in taxonomy.terms)
            print(f"  New taxonomy '{taxonomy.name}': {terms}")
        print()

        # Mode-based expansion
        density = Dimension(
            id="density",
            display_name="Density",
            modes=[
                Mode(id="compact", name="Compact"),
                Mode(id="comfortable", name="Comfortable"),
                Mode(id="spacious", name="Spacious"),
            ],
        )
        spacing = loader.get_algorithm("spacing-scale")
        if not spacing:
            print("Failed to load spacing-scale")
            return

        result = TokenGenerator().generate(spacing, dimensions=[density])
        print(f"Generated {len(result.tokens)} spacing tokens:")
        for token in result.tokens:
            print(f"  {token.display_name:>5} [{', '.join(token.mode_ids)}] = {token.value}")
        if result.errors:
            print("Errors:")
            for error in result.errors:
                print(f"  {error}")


if __name__ == "__main__":
    main()
