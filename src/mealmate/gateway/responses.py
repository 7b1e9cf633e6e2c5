"""
Provider response parsing.

Provider payloads are validated once, here, into a tagged result:
Parsed(data) or Malformed(reason). Nothing past the gateway ever touches
a raw payload.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mealmate.gateway.base import Recipe
from mealmate.models import PrepStep

T = TypeVar("T")


@dataclass(frozen=True)
class Parsed(Generic[T]):
    data: T


@dataclass(frozen=True)
class Malformed:
    reason: str


# =============================================================================
# Provider shapes
# =============================================================================


class _ProviderModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SearchSummary(_ProviderModel):
    id: int
    title: str = ""
    image: str | None = None


class SearchPayload(_ProviderModel):
    results: list[SearchSummary]


class Nutrient(_ProviderModel):
    name: str
    amount: float = 0
    unit: str = ""


class Nutrition(_ProviderModel):
    nutrients: list[Nutrient] = Field(default_factory=list)


class ExtendedIngredient(_ProviderModel):
    original: str = ""


class RecipeDetail(_ProviderModel):
    id: int
    title: str = ""
    image: str | None = None
    ready_in_minutes: int | None = Field(default=None, alias="readyInMinutes")
    source_name: str | None = Field(default=None, alias="sourceName")
    source_url: str | None = Field(default=None, alias="sourceUrl")
    nutrition: Nutrition = Field(default_factory=Nutrition)
    extended_ingredients: list[ExtendedIngredient] = Field(default_factory=list, alias="extendedIngredients")
    dish_types: list[str] = Field(default_factory=list, alias="dishTypes")

    def nutrient(self, name: str) -> float:
        """Amount of a nutrient by provider name; 0 when missing."""
        for nutrient in self.nutrition.nutrients:
            if nutrient.name == name:
                return nutrient.amount
        return 0


class InstructionStep(_ProviderModel):
    number: int
    step: str


class InstructionBlock(_ProviderModel):
    steps: list[InstructionStep] = Field(default_factory=list)


# =============================================================================
# Parsers
# =============================================================================


def parse_search(payload: Any) -> Parsed[SearchPayload] | Malformed:
    """A missing result list is malformed; an empty one is a valid answer."""
    if not isinstance(payload, dict) or payload.get("results") is None:
        return Malformed("response has no results list")
    try:
        return Parsed(SearchPayload.model_validate(payload))
    except ValidationError as e:
        return Malformed(f"search results failed validation: {e.error_count()} errors")


def parse_detail(payload: Any) -> Parsed[RecipeDetail] | Malformed:
    if not isinstance(payload, dict):
        return Malformed("recipe detail is not an object")
    try:
        return Parsed(RecipeDetail.model_validate(payload))
    except ValidationError as e:
        return Malformed(f"recipe detail failed validation: {e.error_count()} errors")


def parse_instructions(payload: Any) -> Parsed[list[PrepStep]] | Malformed:
    """The first instruction block's steps. No blocks means no steps."""
    if not isinstance(payload, list):
        return Malformed("instructions are not a list")
    if not payload:
        return Parsed([])
    try:
        block = InstructionBlock.model_validate(payload[0])
    except ValidationError as e:
        return Malformed(f"instructions failed validation: {e.error_count()} errors")
    return Parsed([PrepStep(number=s.number, step=s.step) for s in block.steps])


def detail_to_recipe(detail: RecipeDetail) -> Recipe:
    return Recipe(
        id=detail.id,
        label=detail.title,
        image=detail.image,
        source=detail.source_name or "",
        url=detail.source_url or "",
        calories=detail.nutrient("Calories"),
        total_time=detail.ready_in_minutes or 0,
        ingredient_lines=[i.original for i in detail.extended_ingredients if i.original],
        protein=detail.nutrient("Protein"),
        carbs=detail.nutrient("Carbohydrates"),
        fat=detail.nutrient("Fat"),
        food_category=detail.dish_types[0] if detail.dish_types else "",
    )
