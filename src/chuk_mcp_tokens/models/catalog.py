"""
Catalog models - dimensions, modes and taxonomies.

These are owned by the caller. The engine only reads them, except
that generation may append terms to a taxonomy.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Mode(BaseModel):
    """One option within a design dimension (e.g. 'dark' in 'theme')."""

    id: str
    name: str = ""
    dimension_id: str | None = Field(None, alias="dimensionId")

    model_config = {"frozen": True, "populate_by_name": True}


class Dimension(BaseModel):
    """An axis of design variation and its modes."""

    id: str
    display_name: str = Field("", alias="displayName")
    modes: list[Mode] = Field(default_factory=list)
    default_mode_id: str | None = Field(None, alias="defaultMode")

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def mode_ids(self) -> list[str]:
        return [m.id for m in self.modes]


class Term(BaseModel):
    """A named entry within a taxonomy."""

    id: str
    name: str
    description: str = ""

    model_config = {"frozen": True}


class Taxonomy(BaseModel):
    """
    A named classification scheme.

    Not frozen: generation appends terms when asked to work in place.
    """

    id: str
    name: str
    description: str = ""
    terms: list[Term] = Field(default_factory=list)
    resolved_value_type_ids: list[str] = Field(default_factory=list, alias="resolvedValueTypeIds")

    model_config = {"populate_by_name": True}

    def find_term(self, name: str) -> Term | None:
        """Find a term by exact name."""
        for term in self.terms:
            if term.name == name:
                return term
        return None

    def get_term(self, term_id: str) -> Term | None:
        """Find a term by id."""
        for term in self.terms:
            if term.id == term_id:
                return term
        return None


class TaxonomyRef(BaseModel):
    """A (taxonomy, term) classification attached to a token."""

    taxonomy_id: str = Field(..., alias="taxonomyId")
    term_id: str = Field(..., alias="termId")

    model_config = {"frozen": True, "populate_by_name": True}
