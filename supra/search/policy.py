"""Deterministic selection policy applied to each conversation turn.

The backend only classifies the turn and names the dishes it refers to.
Every selection invariant (what is kept, what is dropped, dedup, limit,
standing constraints) is enforced here.
"""

from typing import Iterable

import structlog
from pydantic import BaseModel

from supra.models.catalog import Restaurant
from supra.models.search import OperationType, SelectionEntry, TurnInterpretation
from supra.models.state import SelectionContext

logger = structlog.get_logger()


class PolicyResult(BaseModel):
    """New selection context plus the operation it represents."""

    context: SelectionContext
    operation: OperationType


def normalize_term(value: str | None) -> str | None:
    """Lowercase and trim a category or constraint; empty becomes None."""
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


def _dedupe(entries: Iterable[SelectionEntry]) -> list[SelectionEntry]:
    seen: set[tuple[str, str]] = set()
    result = []
    for entry in entries:
        if entry.key in seen:
            continue
        seen.add(entry.key)
        result.append(entry)
    return result


def _dish_terms(catalog: Iterable[Restaurant]) -> dict[tuple[str, str], set[str]]:
    """Allergens and ingredients per dish key, lowercased."""
    terms: dict[tuple[str, str], set[str]] = {}
    for restaurant in catalog:
        for dish in restaurant.dishes:
            key = (str(restaurant.id), dish.name)
            terms.setdefault(key, set()).update(
                t.strip().lower() for t in [*dish.allergens, *dish.ingredients] if t
            )
    return terms


def violates(terms: set[str], constraints: Iterable[str]) -> bool:
    """True when any constraint appears in any allergen or ingredient."""
    return any(c in term for c in constraints for term in terms)


def update_constraints(
    current: Iterable[str],
    added: Iterable[str],
    lifted: Iterable[str],
) -> list[str]:
    """Merge newly stated constraints and drop the ones the user took back."""
    lifted_set = {t for t in (normalize_term(c) for c in lifted) if t}
    result: list[str] = []
    for constraint in [*current, *added]:
        term = normalize_term(constraint)
        if term and term not in lifted_set and term not in result:
            result.append(term)
    return result


def diff_operation(
    before: list[SelectionEntry],
    after: list[SelectionEntry],
    intent: str,
) -> OperationType:
    """Classify the change between two selections."""
    before_keys = {e.key for e in before}
    after_keys = {e.key for e in after}

    gained = after_keys - before_keys
    lost = before_keys - after_keys

    if not gained and not lost:
        return "no_change"
    if gained and lost:
        return "replaced"
    if gained:
        return "added"
    return "removed" if intent == "remove" else "filtered"


class SelectionPolicy:
    """State machine over the intents explore, select, add, remove, replace and query."""

    def apply(
        self,
        context: SelectionContext,
        interpretation: TurnInterpretation,
        catalog: list[Restaurant],
        limit: int,
    ) -> PolicyResult:
        """Compute the selection after one turn.

        Args:
            context: Selection and constraints before this turn
            interpretation: Backend classification whose results were already
                resolved against the catalog
            catalog: Live catalog used for constraint filtering
            limit: Maximum number of dishes in the selection

        Returns:
            PolicyResult with the new context and the derived operation
        """
        intent = interpretation.intent
        category = normalize_term(interpretation.category)

        candidates = [
            entry.model_copy(update={"category": normalize_term(entry.category) or category})
            for entry in interpretation.results
        ]
        entries = list(context.entries)

        if intent in ("explore", "add"):
            entries = entries + candidates

        elif intent == "select":
            chosen = {c.key for c in candidates}
            categories = {c.category for c in candidates if c.category}
            if category:
                categories.add(category)
            # Also narrow the categories stored on the chosen dishes
            categories.update(
                e.category for e in entries if e.key in chosen and e.category
            )
            entries = [
                e for e in entries
                if e.category not in categories or e.key in chosen
            ] + candidates

        elif intent == "remove":
            named = {c.key for c in candidates}
            if named:
                entries = [e for e in entries if e.key not in named]
            elif category:
                entries = [e for e in entries if e.category != category]

        elif intent == "replace":
            if category:
                entries = [e for e in entries if e.category != category]
            else:
                entries = []
            entries = entries + candidates

        constraints = update_constraints(
            context.constraints,
            interpretation.constraints,
            interpretation.lifted_constraints,
        )
        if constraints:
            terms = _dish_terms(catalog)
            entries = [
                e for e in entries
                if not violates(terms.get(e.key, set()), constraints)
            ]

        entries = _dedupe(entries)
        if len(entries) > limit:
            logger.info("selection_truncated", selected=len(entries), limit=limit)
            entries = entries[:limit]

        operation = diff_operation(context.entries, entries, intent)

        logger.info(
            "selection_policy_applied",
            intent=intent,
            category=category,
            operation=operation,
            before=len(context.entries),
            after=len(entries),
            constraints=constraints,
        )

        return PolicyResult(
            context=SelectionContext(entries=entries, constraints=constraints),
            operation=operation,
        )
