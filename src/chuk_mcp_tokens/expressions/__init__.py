"""
Expression language for token formulas.

One canonical tree, three notations:
- Tree: frozen dataclass nodes (serializable to the document JSON shape)
- Linear text: `base * pow(ratio, n)`, `size = base * 2`
- Display notation: `{base} \\times {ratio}^{{n}}`

Conversions only guarantee semantic equivalence, not identical text.
"""

from chuk_mcp_tokens.expressions.analysis import (
    ComplexityLevel,
    check_tree,
    complexity_level,
    complexity_score,
    extract_functions,
    extract_variables,
    simplify,
)
from chuk_mcp_tokens.expressions.ast import (
    Assignment,
    BinaryOp,
    FunctionCall,
    Group,
    Index,
    ListLiteral,
    Literal,
    Node,
    UnaryOp,
    VariableRef,
    count_nodes,
    depth,
    node_from_dict,
    walk,
)
from chuk_mcp_tokens.expressions.display import (
    from_display_notation,
    parse_display,
    render_display,
    to_display_notation,
)
from chuk_mcp_tokens.expressions.functions import STANDARD_FUNCTIONS, is_function_name
from chuk_mcp_tokens.expressions.interpreter import evaluate_tree, truthy
from chuk_mcp_tokens.expressions.lexer import Lexer, Token, TokenKind, tokenize
from chuk_mcp_tokens.expressions.parser import Parser, parse_to_tree
from chuk_mcp_tokens.expressions.printer import build_from_tree

__all__ = [
    # Tree
    "Assignment",
    "BinaryOp",
    "FunctionCall",
    "Group",
    "Index",
    "ListLiteral",
    "Literal",
    "Node",
    "UnaryOp",
    "VariableRef",
    "count_nodes",
    "depth",
    "node_from_dict",
    "walk",
    # Linear notation
    "Lexer",
    "Parser",
    "Token",
    "TokenKind",
    "build_from_tree",
    "parse_to_tree",
    "tokenize",
    # Display notation
    "from_display_notation",
    "parse_display",
    "render_display",
    "to_display_notation",
    # Evaluation
    "STANDARD_FUNCTIONS",
    "evaluate_tree",
    "is_function_name",
    "truthy",
    # Analysis
    "ComplexityLevel",
    "check_tree",
    "complexity_level",
    "complexity_score",
    "extract_functions",
    "extract_variables",
    "simplify",
]
