"""
Internal tag -> provider vocabulary.

Both translations are total: every input lands in an explicit arm,
including the default one, so what happens to an unknown tag is a
decision in code rather than a missing dictionary key.

- Diet: unknown preference tags map to None and are dropped.
- Allergy: unknown allergens fall back to their lowercase literal as the
  intolerance AND are excluded as an ingredient term.
"""

from dataclasses import dataclass

from mealmate.models import Allergy, DietaryPreference


def diet_to_provider(preference: DietaryPreference | None) -> str | None:
    match preference:
        case DietaryPreference.BALANCED:
            return "balanced"
        case DietaryPreference.HIGH_PROTEIN:
            return "high-protein"
        case DietaryPreference.LOW_CARB:
            return "low-carb"
        case DietaryPreference.VEGETARIAN:
            return "vegetarian"
        case DietaryPreference.VEGAN:
            return "vegan"
        case _:
            return None


def diet_tag_to_provider(tag: str | None) -> str | None:
    """Translate a raw preference tag (any case). Unknown tags give None."""
    if not tag:
        return None
    return diet_to_provider(DietaryPreference.parse(tag))


@dataclass(frozen=True)
class IntoleranceMapping:
    intolerance: str
    exclude_ingredient: str | None = None


def allergy_to_intolerance(tag: str) -> IntoleranceMapping:
    """Translate a raw allergy tag (any case) into provider terms."""
    match Allergy.parse(tag):
        case Allergy.DAIRY:
            return IntoleranceMapping("dairy")
        case Allergy.EGGS:
            return IntoleranceMapping("egg")
        case Allergy.NUTS:
            return IntoleranceMapping("tree nut")
        case Allergy.PEANUTS:
            return IntoleranceMapping("peanut")
        case Allergy.SHELLFISH:
            return IntoleranceMapping("shellfish")
        case Allergy.FISH:
            return IntoleranceMapping("seafood")
        case Allergy.WHEAT:
            return IntoleranceMapping("wheat")
        case Allergy.GLUTEN:
            return IntoleranceMapping("gluten")
        case Allergy.SOY:
            return IntoleranceMapping("soy")
        case Allergy.SESAME:
            return IntoleranceMapping("sesame")
        case _:
            literal = tag.strip().lower()
            return IntoleranceMapping(literal, exclude_ingredient=literal)
