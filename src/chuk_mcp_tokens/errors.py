"""
Exceptions raised by the token engine.

Three tiers:
- Structural problems (AlgorithmValidationError) block execution entirely
- Evaluation failures (EvaluationError) abort a single execute() call
- Generation issues are recorded per cell in GenerationResult.errors
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chuk_mcp_tokens.constants import ErrorMessages

if TYPE_CHECKING:
    from chuk_mcp_tokens.engine.validator import ValidationResult


class TokenEngineError(Exception):
    """Base class for all token engine errors."""


class ExpressionSyntaxError(TokenEngineError):
    """Malformed linear or display expression text."""

    def __init__(self, message: str, text: str = "", position: int | None = None):
        self.text = text
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)


class EvaluationError(TokenEngineError):
    """An expression failed while running an algorithm step."""

    def __init__(
        self,
        message: str,
        step_name: str | None = None,
        expression: str | None = None,
    ):
        self.step_name = step_name
        self.expression = expression
        self.reason = message
        if step_name:
            message = f"{step_name}: {message}"
        super().__init__(message)


class AlgorithmValidationError(TokenEngineError):
    """Structural validation failed; the algorithm cannot run."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.messages()))

    @property
    def messages(self) -> list[str]:
        return self.result.messages()


class TooManyCombinationsError(TokenEngineError):
    """Mode expansion would exceed the configured ceiling."""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(f"Mode expansion would produce {count} combinations (limit {limit})")


class TaxonomyNotFoundError(TokenEngineError):
    """A referenced taxonomy id is not present in the catalog."""

    def __init__(self, taxonomy_id: str):
        self.taxonomy_id = taxonomy_id
        super().__init__(ErrorMessages.TAXONOMY_NOT_FOUND.format(taxonomy_id=taxonomy_id))
