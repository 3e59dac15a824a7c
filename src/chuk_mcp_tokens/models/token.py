"""
Generated token models - the output of token generation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from chuk_mcp_tokens.constants import TokenStatus, TokenTier
from chuk_mcp_tokens.models.catalog import Taxonomy, TaxonomyRef


class ModeValue(BaseModel):
    """A token value scoped to a set of modes (empty = all modes)."""

    mode_ids: list[str] = Field(default_factory=list, alias="modeIds")
    value: float | int

    model_config = {"frozen": True, "populate_by_name": True}


class GeneratedToken(BaseModel):
    """A concrete token produced by one (iteration, mode combination) cell."""

    id: str
    display_name: str = Field(..., alias="displayName")
    description: str = ""
    resolved_value_type_id: str = Field("", alias="resolvedValueTypeId")
    collection_id: str | None = Field(None, alias="tokenCollectionId")
    token_tier: TokenTier = Field(TokenTier.PRIMITIVE, alias="tokenTier")
    private: bool = False
    status: TokenStatus = TokenStatus.STABLE
    themeable: bool = False
    taxonomies: list[TaxonomyRef] = Field(default_factory=list)
    generated_by_algorithm: bool = Field(True, alias="generatedByAlgorithm")
    algorithm_id: str = Field(..., alias="algorithmId")
    iteration_value: int = Field(..., alias="iterationValue")
    values_by_mode: list[ModeValue] = Field(default_factory=list, alias="valuesByMode")

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def value(self) -> float | int:
        """The token's (single) value."""
        return self.values_by_mode[0].value

    @property
    def mode_ids(self) -> list[str]:
        return self.values_by_mode[0].mode_ids


@dataclass
class GenerationResult:
    """Result of a token generation run; partial success is normal."""

    tokens: list[GeneratedToken] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    new_taxonomies: list[Taxonomy] = field(default_factory=list)
    updated_taxonomies: list[Taxonomy] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict using the document field names."""
        return {
            "tokens": [t.model_dump(mode="json", by_alias=True) for t in self.tokens],
            "errors": list(self.errors),
            "newTaxonomies": [
                t.model_dump(mode="json", by_alias=True) for t in self.new_taxonomies
            ],
            "updatedTaxonomies": [
                t.model_dump(mode="json", by_alias=True) for t in self.updated_taxonomies
            ],
        }
