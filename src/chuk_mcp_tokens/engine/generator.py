"""
Token Generator - expands an algorithm into concrete tokens.

Pipeline:
1. Pre-flight checks (formulas present, taxonomy target, structure)
2. Iteration values from the inclusive range
3. Mode combinations for mode-based variables
4. Scale names for each iteration value
5. Destination taxonomy (existing, or new and seeded with the names)
6. Term matching by exact name, appending missing terms
7. One token per (iteration value, mode combination) cell

Pre-flight failures abort the whole call. After that, failures are
isolated per cell and recorded in GenerationResult.errors.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from chuk_mcp_tokens.constants import DEFAULT_MAX_COMBINATIONS, ErrorMessages
from chuk_mcp_tokens.engine.evaluator import AlgorithmExecutor
from chuk_mcp_tokens.engine.modes import empty_dimensions, expand_mode_combinations
from chuk_mcp_tokens.engine.naming import scale_name, scale_names
from chuk_mcp_tokens.errors import (
    AlgorithmValidationError,
    EvaluationError,
    TaxonomyNotFoundError,
    TooManyCombinationsError,
)
from chuk_mcp_tokens.models.algorithm import Algorithm, LogicalMapping, TokenGeneration
from chuk_mcp_tokens.models.catalog import Dimension, Taxonomy, TaxonomyRef, Term
from chuk_mcp_tokens.models.token import GeneratedToken, GenerationResult, ModeValue

logger = logging.getLogger(__name__)

IdFactory = Callable[[str], str]


def create_unique_id(prefix: str) -> str:
    """Create a random id such as 'token-3f2a9c1e8b7d'."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def coerce_number(value: Any) -> int | float:
    """
    Coerce an algorithm's final result to a number.

    Numbers pass through; numeric strings are parsed.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(ErrorMessages.NOT_NUMERIC.format(value=value))
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value):
            return value
        raise ValueError(ErrorMessages.NOT_NUMERIC.format(value=value))
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            raise ValueError(ErrorMessages.NOT_NUMERIC.format(value=value)) from None
        if math.isfinite(parsed):
            return parsed
    raise ValueError(ErrorMessages.NOT_NUMERIC.format(value=value))


class TokenGenerator:
    """
    Generates tokens from an algorithm's token generation settings.

    The only caller data ever mutated is the selected taxonomy's term
    list, and only when modify_taxonomies_in_place is set.
    """

    def __init__(
        self,
        id_factory: IdFactory = create_unique_id,
        max_combinations: int = DEFAULT_MAX_COMBINATIONS,
    ):
        """
        Initialize the generator.

        Args:
            id_factory: Produces ids for tokens, terms and taxonomies from a prefix
            max_combinations: Ceiling on mode combinations per call
        """
        self.id_factory = id_factory
        self.max_combinations = max_combinations

    def generate(
        self,
        algorithm: Algorithm,
        existing_token_ids: Iterable[str] = (),
        dimensions: Sequence[Dimension] = (),
        taxonomies: Sequence[Taxonomy] = (),
        selected_modes: Mapping[str, Sequence[str]] | None = None,
        modify_taxonomies_in_place: bool = False,
    ) -> GenerationResult:
        """
        Generate tokens for every (iteration value, mode combination).

        Args:
            algorithm: Algorithm with token generation settings
            existing_token_ids: Ids that must not be reused
            dimensions: Dimension catalog for mode expansion
            taxonomies: Taxonomy catalog
            selected_modes: Optional dimension id -> mode ids restriction
            modify_taxonomies_in_place: Append new terms to the caller's taxonomy

        Returns:
            GenerationResult with tokens, per-item errors and taxonomy changes
        """
        result = GenerationResult()
        generation = algorithm.token_generation
        if generation is None or not generation.enabled:
            return result

        if not algorithm.formulas:
            result.errors.append(ErrorMessages.NO_FORMULAS)
            return result

        mapping = generation.logical_mapping
        if not mapping.taxonomy_id and not mapping.new_taxonomy_name:
            result.errors.append(ErrorMessages.NO_TAXONOMY)
            return result

        try:
            executor = AlgorithmExecutor(algorithm)
        except AlgorithmValidationError as e:
            result.errors.extend(e.messages)
            return result

        try:
            combinations = expand_mode_combinations(
                algorithm.variables, dimensions, selected_modes, self.max_combinations
            )
        except TooManyCombinationsError as e:
            result.errors.append(str(e))
            return result
        if not combinations:
            missing = empty_dimensions(algorithm.variables, dimensions, selected_modes)
            result.errors.append(ErrorMessages.NO_MODES.format(dimensions=", ".join(missing)))
            return result

        values = generation.iteration_range.values()
        names = scale_names(values, mapping)

        try:
            taxonomy = self._resolve_taxonomy(
                mapping, names, taxonomies, generation.bulk_assignments.resolved_value_type_id
            )
        except TaxonomyNotFoundError as e:
            result.errors.append(str(e))
            return result

        created = mapping.taxonomy_id is None
        if created:
            result.new_taxonomies.append(taxonomy)
        original_term_count = len(taxonomy.terms)

        if created or modify_taxonomies_in_place:
            working = taxonomy
        else:
            working = taxonomy.model_copy(deep=True)
        term_ids = self._match_or_create_terms(working, values, names)

        # Display names resolve against the caller's catalog plus the working taxonomy
        catalog = {t.id: t for t in taxonomies}
        catalog[working.id] = working

        existing = set(existing_token_ids)
        issued: set[str] = set()

        for n in values:
            for combination in combinations:
                try:
                    outcome = executor.execute(n, mode_context=combination)
                    value = coerce_number(outcome.final_result)
                except (EvaluationError, ValueError) as e:
                    message = ErrorMessages.ITERATION_FAILED.format(n=n, error=e)
                    logger.warning(message)
                    result.errors.append(message)
                    continue

                token_id = self.id_factory("token")
                if token_id in existing or token_id in issued:
                    message = ErrorMessages.TOKEN_EXISTS.format(token_id=token_id)
                    logger.warning(message)
                    result.errors.append(message)
                    continue

                term_id = term_ids.get(n)
                if term_id is None:
                    result.errors.append(ErrorMessages.NO_TERM_MAPPING.format(n=n))
                    continue

                token = self._build_token(
                    token_id,
                    algorithm,
                    generation,
                    value,
                    n,
                    working.id,
                    term_id,
                    combination,
                    catalog,
                )
                issued.add(token_id)
                result.tokens.append(token)

        if (
            mapping.taxonomy_id
            and modify_taxonomies_in_place
            and len(taxonomy.terms) > original_term_count
        ):
            result.updated_taxonomies.append(taxonomy)

        logger.info(
            f"Generated {len(result.tokens)} tokens for algorithm '{algorithm.name}' "
            f"({len(values)} values x {len(combinations)} mode combinations, "
            f"{len(result.errors)} errors)"
        )
        return result

    def _resolve_taxonomy(
        self,
        mapping: LogicalMapping,
        names: dict[int, str],
        taxonomies: Sequence[Taxonomy],
        resolved_value_type_id: str,
    ) -> Taxonomy:
        """Find the selected taxonomy, or create one seeded with the scale names."""
        if mapping.taxonomy_id:
            for taxonomy in taxonomies:
                if taxonomy.id == mapping.taxonomy_id:
                    return taxonomy
            raise TaxonomyNotFoundError(mapping.taxonomy_id)

        terms: list[Term] = []
        for name in names.values():
            if any(t.name == name for t in terms):
                continue
            terms.append(
                Term(
                    id=self.id_factory("term"),
                    name=name,
                    description=f"Generated term for scale: {name}",
                )
            )
        return Taxonomy(
            id=self.id_factory("taxonomy"),
            name=mapping.new_taxonomy_name or "",
            description="Generated by algorithm for scale terms",
            terms=terms,
            resolved_value_type_ids=[resolved_value_type_id] if resolved_value_type_id else [],
        )

    def _match_or_create_terms(
        self, taxonomy: Taxonomy, values: list[int], names: dict[int, str]
    ) -> dict[int, str]:
        """Map each iteration value to a term id, appending missing terms."""
        term_ids: dict[int, str] = {}
        for n in values:
            name = names[n]
            term = taxonomy.find_term(name)
            if term is None:
                term = Term(
                    id=self.id_factory("term"),
                    name=name,
                    description=f"Generated term for scale: {name}",
                )
                taxonomy.terms.append(term)
            term_ids[n] = term.id
        return term_ids

    def _build_token(
        self,
        token_id: str,
        algorithm: Algorithm,
        generation: TokenGeneration,
        value: int | float,
        n: int,
        taxonomy_id: str,
        term_id: str,
        combination: dict[str, str],
        catalog: dict[str, Taxonomy],
    ) -> GeneratedToken:
        bulk = generation.bulk_assignments

        refs = list(bulk.taxonomies)
        if not any(ref.taxonomy_id == taxonomy_id for ref in refs):
            refs.append(TaxonomyRef(taxonomy_id=taxonomy_id, term_id=term_id))

        return GeneratedToken(
            id=token_id,
            display_name=self._display_name(refs, catalog, n, generation.logical_mapping),
            description=f'Generated by algorithm "{algorithm.name}" with n={n}',
            resolved_value_type_id=bulk.resolved_value_type_id or algorithm.resolved_value_type_id,
            collection_id=bulk.collection_id,
            token_tier=bulk.token_tier,
            private=bulk.private,
            status=bulk.status,
            themeable=bulk.themeable,
            taxonomies=refs,
            generated_by_algorithm=True,
            algorithm_id=algorithm.id,
            iteration_value=n,
            values_by_mode=[ModeValue(mode_ids=list(combination.values()), value=value)],
        )

    @staticmethod
    def _display_name(
        refs: list[TaxonomyRef],
        catalog: dict[str, Taxonomy],
        n: int,
        mapping: LogicalMapping,
    ) -> str:
        """Term names of every classification, joined by a space."""
        term_names: list[str] = []
        for ref in refs:
            taxonomy = catalog.get(ref.taxonomy_id)
            if taxonomy is None:
                continue
            term = taxonomy.get_term(ref.term_id)
            if term is not None:
                term_names.append(term.name)
        if not term_names:
            return scale_name(n, mapping)
        return " ".join(term_names)


def generate_tokens(
    algorithm: Algorithm,
    existing_token_ids: Iterable[str] = (),
    dimensions: Sequence[Dimension] = (),
    taxonomies: Sequence[Taxonomy] = (),
    selected_modes: Mapping[str, Sequence[str]] | None = None,
    modify_taxonomies_in_place: bool = False,
) -> GenerationResult:
    """Convenience function using a default TokenGenerator."""
    generator = TokenGenerator()
    return generator.generate(
        algorithm,
        existing_token_ids=existing_token_ids,
        dimensions=dimensions,
        taxonomies=taxonomies,
        selected_modes=selected_modes,
        modify_taxonomies_in_place=modify_taxonomies_in_place,
    )
