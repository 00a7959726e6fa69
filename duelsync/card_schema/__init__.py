"""Card catalog types - immutable designs, effects and keywords."""

from .card_design import (
    CardCatalog,
    CardCategory,
    CardDesign,
    CardEffect,
    EffectAction,
    EffectTarget,
    EffectTrigger,
    Keyword,
    Rarity,
    TokenSpec,
)
from .validation import (
    CatalogValidationError,
    ValidationResult,
    validate_card_design,
    validate_catalog,
)

__all__ = [
    "CardCatalog",
    "CardCategory",
    "CardDesign",
    "CardEffect",
    "EffectAction",
    "EffectTarget",
    "EffectTrigger",
    "Keyword",
    "Rarity",
    "TokenSpec",
    "CatalogValidationError",
    "ValidationResult",
    "validate_card_design",
    "validate_catalog",
]
