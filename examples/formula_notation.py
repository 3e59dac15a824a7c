#!/usr/bin/env python3
"""
Example: Formula Notation.

Formulas are stored as linear text and shown to designers in display
notation. Both forms parse into the same tree, which can be analyzed,
simplified and evaluated.

Usage:
    python examples/formula_notation.py
"""

from chuk_mcp_tokens.engine import evaluate_expression
from chuk_mcp_tokens.expressions import (
    build_from_tree,
    check_tree,
    complexity_level,
    extract_variables,
    from_display_notation,
    parse_to_tree,
    simplify,
    to_display_notation,
)

FORMULAS = [
    "size = base * pow(ratio, n)",
    "round(base * ratio ^ n)",
    "sqrt(area) / 2",
    "n > 0 && spacing >= 32",
    "base * 1 + 2 * 3",
]


def main() -> None:
    """Demonstrate formula parsing and conversion."""
    print("CHUK Tokens Formula Notation Demo")
    print("=" * 40)
    print()

    for text in FORMULAS:
        tree = parse_to_tree(text)
        display = to_display_notation(text)
        print(f"Linear:     {text}")
        print(f"Display:    {display}")
        print(f"Back:       {from_display_notation(display)}")
        print(f"Variables:  {', '.join(extract_variables(tree))}")
        print(f"Complexity: {complexity_level(tree).value}")
        print(f"Simplified: {build_from_tree(simplify(tree))}")
        for warning in check_tree(tree):
            print(f"  {warning}")
        print()

    scope = {"base": 16, "ratio": 1.25, "n": 2}
    print(f"Evaluating with {scope}:")
    print(f"  base * pow(ratio, n) = {evaluate_expression('base * pow(ratio, n)', scope)}")
    print(f"  round(base * ratio ^ n) = {evaluate_expression('round(base * ratio ^ n)', scope)}")


if __name__ == "__main__":
    main()
