"""
Algorithm library - YAML algorithm definitions.

This module provides:
- AlgorithmLoader: Discovers algorithms in the library and project
- AlgorithmMetadata: Summary used for listings
"""

from chuk_mcp_tokens.algorithms.loader import AlgorithmLoader, AlgorithmMetadata

__all__ = [
    "AlgorithmLoader",
    "AlgorithmMetadata",
]
