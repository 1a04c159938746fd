"""
Service duration resolution.

A service can carry several duration rules per species. The rule applied to
a pet is chosen by precedence, first match wins:

1. same species and a breed equal to the pet's breed (case-insensitive)
2. same species and a size equal to the pet's size
3. same species and ``is_default_for_species``

Rule sets are tens of rows at most, so each tier is a linear scan.
"""

from typing import Iterable, Optional, Sequence

from groombook.core.exceptions import NoMatchingRule
from groombook.domain.entities import DurationRule, Pet


def _match_breed(rules: Sequence[DurationRule], pet: Pet) -> Optional[DurationRule]:
    breed = (pet.breed or "").strip().lower()
    if not breed:
        return None
    for rule in rules:
        if rule.species == pet.species and rule.breed and rule.breed.strip().lower() == breed:
            return rule
    return None


def _match_size(rules: Sequence[DurationRule], pet: Pet) -> Optional[DurationRule]:
    for rule in rules:
        if rule.species == pet.species and rule.size is not None and rule.size == pet.size:
            return rule
    return None


def _match_default(rules: Sequence[DurationRule], pet: Pet) -> Optional[DurationRule]:
    for rule in rules:
        if rule.species == pet.species and rule.is_default_for_species:
            return rule
    return None


_PRECEDENCE = (_match_breed, _match_size, _match_default)


def find_duration_rule(rules: Iterable[DurationRule], pet: Pet) -> Optional[DurationRule]:
    """Return the rule that applies to ``pet``, or None."""
    rules = list(rules)
    for matcher in _PRECEDENCE:
        rule = matcher(rules, pet)
        if rule is not None:
            return rule
    return None


def resolve_duration_minutes(
    rules: Iterable[DurationRule], pet: Pet, service_id: Optional[int] = None
) -> int:
    """Resolve how many minutes a service takes for ``pet``.

    Raises:
        NoMatchingRule: when no rule applies. The appointment must never be
            created with a guessed duration.
    """
    rule = find_duration_rule(rules, pet)
    if rule is None:
        raise NoMatchingRule(
            species=pet.species.value,
            breed=pet.breed,
            size=pet.size.value if pet.size is not None else None,
            service_id=service_id,
        )
    return rule.base_duration_minutes
