"""
Catalog Validation - Sanity checks for card designs.

Validates that:
1. Units have attack and health, action cards do not need them
2. Costs and effect values are non-negative
3. Summon effects and token triggers have a token to summon
4. Effects that need a chosen target are not on triggers with no chooser
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable

from .card_design import (
    CardCategory,
    CardDesign,
    EffectAction,
    EffectTrigger,
)

# Triggers whose effects get a target chosen by the player
PLAYER_TARGETED_TRIGGERS = frozenset({EffectTrigger.ON_PLAY, EffectTrigger.ACTIVATED})


class CatalogValidationError(Exception):
    """Raised when catalog validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Catalog validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_card_design(design: CardDesign) -> ValidationResult:
    """Validate one design."""
    errors: list[str] = []
    warnings: list[str] = []
    prefix = f"Card '{design.id}'"

    if not design.id:
        errors.append("Card id is required")
    if not design.name:
        errors.append(f"{prefix}: name is required")
    if design.mana_cost < 0:
        errors.append(f"{prefix}: mana_cost must be >= 0")

    if design.category == CardCategory.UNIT:
        if design.attack is None or design.health is None:
            errors.append(f"{prefix}: unit cards need attack and health")
        else:
            if design.attack < 0:
                errors.append(f"{prefix}: attack must be >= 0")
            if design.health <= 0:
                errors.append(f"{prefix}: health must be > 0")
    elif design.attack is not None or design.health is not None:
        warnings.append(f"{prefix}: action card stats are ignored")

    for i, effect in enumerate(design.effects):
        if effect.value < 0:
            errors.append(f"{prefix}: effect {i} value must be >= 0")
        if effect.action == EffectAction.SUMMON and design.token is None:
            errors.append(f"{prefix}: effect {i} summons but the card has no token")
        if effect.needs_target and effect.trigger not in PLAYER_TARGETED_TRIGGERS:
            warnings.append(
                f"{prefix}: effect {i} needs a chosen target but fires on "
                f"{effect.trigger.value}; it will always fizzle"
            )
        if design.category == CardCategory.ACTION and effect.trigger != EffectTrigger.ON_PLAY:
            warnings.append(f"{prefix}: action card effect {i} never fires")

    if design.token is not None:
        token = design.token
        if token.attack < 0 or token.health <= 0:
            errors.append(f"{prefix}: token needs attack >= 0 and health > 0")
        if token.count < 1:
            errors.append(f"{prefix}: token count must be >= 1")
        if token.max_summons < 0:
            errors.append(f"{prefix}: token max_summons must be >= 0")
        if token.trigger is None and not any(
            e.action == EffectAction.SUMMON for e in design.effects
        ):
            warnings.append(f"{prefix}: token is never summoned")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def validate_catalog(
    designs: Iterable[CardDesign],
    raise_on_error: bool = False,
) -> ValidationResult:
    """
    Validate a collection of designs.

    Also checks id uniqueness. Raises CatalogValidationError if
    raise_on_error=True and errors exist.
    """
    errors: list[str] = []
    warnings: list[str] = []
    seen: set[str] = set()

    for design in designs:
        if design.id in seen:
            errors.append(f"Duplicate card id '{design.id}'")
        seen.add(design.id)
        result = validate_card_design(design)
        errors.extend(result.errors)
        warnings.extend(result.warnings)

    if raise_on_error and errors:
        raise CatalogValidationError(errors)

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
