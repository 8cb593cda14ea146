"""Alias Service - Validated ingredient name lookup for bulk imports.

Spreadsheets refer to ingredients by free-text names that do not always
match the catalog ("Deeg" for "Master Puff", "garlic flakes" for
"Garlic"). Instead of normalizing and guessing names while importing, the
import path resolves every name through an AliasTable: an immutable map
from name slug to ingredient ID, built and checked for conflicts before
the first row is processed. Keying on the slug makes alias lookup agree
with ingredient name uniqueness.

Example:
    >>> table = build_alias_table({"Garlic": 3, "Garlic Flakes": 3})
    >>> table.resolve("  GARLIC   flakes ")
    3
    >>> table.resolve("Saffron") is None
    True
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError

from ..models import Ingredient, IngredientAlias
from ..utils.slug_utils import create_slug, normalize_name
from .database import session_scope
from .exceptions import AliasConflict, DatabaseError, IngredientNotFound, ValidationError
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


class AliasTable:
    """Immutable map from ingredient name slug to ingredient ID."""

    def __init__(self, entries: Mapping[str, int], names: Optional[Mapping[str, str]] = None):
        self._entries: Dict[str, int] = dict(entries)
        self._names: Dict[str, str] = dict(names or {})

    def resolve(self, name: Optional[str]) -> Optional[int]:
        """Return the ingredient ID for a name, or None if it is unknown."""
        if not name:
            return None
        return self._entries.get(create_slug(name))

    def names_for(self, ingredient_id: int) -> List[str]:
        """All normalized names that resolve to the ingredient."""
        return sorted(
            self._names.get(slug, slug) for slug, target in self._entries.items() if target == ingredient_id
        )

    def __contains__(self, name) -> bool:
        return self.resolve(name) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AliasTable(entries={len(self._entries)})"


def build_alias_table(
    aliases: Union[Mapping[str, int], Iterable[Tuple[str, int]]]
) -> AliasTable:
    """
    Build and validate an alias table.

    Args:
        aliases: Mapping or (name, ingredient_id) pairs

    Returns:
        AliasTable

    Raises:
        ValidationError: If a name is blank
        AliasConflict: If two names share a slug but point to different
            ingredients
    """
    pairs = aliases.items() if isinstance(aliases, Mapping) else aliases

    entries: Dict[str, int] = {}
    names: Dict[str, str] = {}
    errors = []
    for name, ingredient_id in pairs:
        slug = create_slug(name or "")
        if not slug:
            errors.append(f"Alias for ingredient {ingredient_id}: Name is required")
            continue
        existing = entries.get(slug)
        if existing is not None and existing != ingredient_id:
            raise AliasConflict(normalize_name(name), existing, ingredient_id)
        entries[slug] = ingredient_id
        names.setdefault(slug, normalize_name(name))

    if errors:
        raise ValidationError(errors)
    return AliasTable(entries, names)


def add_alias(ingredient_id: int, alias: str, *, session=None) -> IngredientAlias:
    """
    Persist an alternate name for an ingredient.

    Adding the same alias to the same ingredient again returns the existing
    record.

    Raises:
        ValidationError: If the alias is blank
        IngredientNotFound: If the ingredient doesn't exist
        AliasConflict: If the alias already names a different ingredient
    """
    normalized = normalize_name(alias or "")
    if not create_slug(normalized):
        raise ValidationError(["Alias: This field is required"])

    if session is not None:
        return _add_alias_impl(ingredient_id, normalized, session)
    try:
        with session_scope() as session:
            return _add_alias_impl(ingredient_id, normalized, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to add alias '{normalized}'", original_error=e)


def _add_alias_impl(ingredient_id: int, normalized: str, session) -> IngredientAlias:
    ingredient = session.get(Ingredient, ingredient_id)
    if ingredient is None:
        raise IngredientNotFound(ingredient_id)

    slug = create_slug(normalized)
    named = session.query(Ingredient).filter(Ingredient.slug == slug).first()
    if named is not None and named.id != ingredient_id:
        raise AliasConflict(normalized, named.id, ingredient_id)

    existing = next(
        (record for record in session.query(IngredientAlias).all() if create_slug(record.alias) == slug),
        None,
    )
    if existing is not None:
        if existing.ingredient_id != ingredient_id:
            raise AliasConflict(normalized, existing.ingredient_id, ingredient_id)
        return existing

    record = IngredientAlias(ingredient_id=ingredient_id, alias=normalized)
    session.add(record)
    session.flush()
    log_operation(
        logger, operation="add_alias", outcome="success", ingredient_id=ingredient_id, alias=normalized
    )
    return record


def list_aliases(ingredient_id: Optional[int] = None, *, session=None) -> List[IngredientAlias]:
    """List persisted aliases, optionally for one ingredient."""
    if session is not None:
        return _list_aliases_impl(ingredient_id, session)
    with session_scope() as session:
        return _list_aliases_impl(ingredient_id, session)


def _list_aliases_impl(ingredient_id, session) -> List[IngredientAlias]:
    q = session.query(IngredientAlias)
    if ingredient_id is not None:
        q = q.filter(IngredientAlias.ingredient_id == ingredient_id)
    return q.order_by(IngredientAlias.alias).all()


def load_alias_table(extra_aliases: Optional[Mapping[str, str]] = None, *, session=None) -> AliasTable:
    """
    Build the alias table from the catalog.

    The table contains every ingredient's own name, every persisted alias,
    and optionally extra_aliases (alias name -> canonical ingredient name).
    Extra aliases whose canonical ingredient is not in the catalog are
    skipped with a warning.

    Raises:
        AliasConflict: If any name maps to two different ingredients
    """
    if session is not None:
        return _load_alias_table_impl(extra_aliases, session)
    with session_scope() as session:
        return _load_alias_table_impl(extra_aliases, session)


def _load_alias_table_impl(extra_aliases, session) -> AliasTable:
    pairs: List[Tuple[str, int]] = []
    by_slug: Dict[str, int] = {}

    for ingredient in session.query(Ingredient).all():
        pairs.append((ingredient.name, ingredient.id))
        by_slug[ingredient.slug] = ingredient.id

    for record in session.query(IngredientAlias).all():
        pairs.append((record.alias, record.ingredient_id))

    for alias, canonical_name in (extra_aliases or {}).items():
        target = by_slug.get(create_slug(canonical_name))
        if target is None:
            log_operation(
                logger,
                operation="load_alias_table",
                outcome="unknown_canonical_name",
                level=logging.WARNING,
                alias=alias,
                canonical_name=canonical_name,
            )
            continue
        pairs.append((alias, target))

    table = build_alias_table(pairs)
    log_operation(
        logger, operation="load_alias_table", outcome="success", level=logging.DEBUG, entries=len(table)
    )
    return table
