"""
MealMate - Plan Assembler.

Fills a date range x meal period grid with generated meals and owns all
writes to the user's meal plan document.

Bulk generation:
- Slots are generated strictly in date-then-period order
- A failed slot is logged and left unset; the run keeps going
- Progress is reported after every slot, success or failure
- The result is merged into the stored plan, never replacing it

Single-slot edits (generate, paste, delete) persist immediately. The
whole plan document is written on every change (last writer wins).
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Callable, Iterable

from mealmate.auth import IdentityProvider, require_user
from mealmate.db import MEAL_PLAN_TEMPLATES, MEAL_PLANS, DocumentStore
from mealmate.db.adapter import OnError, Unsubscribe
from mealmate.errors import InvalidRequestError, user_message_for
from mealmate.meals.generator import MealGenerator
from mealmate.models import (
    Meal,
    MealPeriod,
    MealPlan,
    MealPlanTemplate,
    PlanStats,
    UserPreferences,
    format_date,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def date_range(start: date | str, number_of_days: int) -> list[str]:
    """Consecutive ISO dates starting at start (inclusive)."""
    first = date.fromisoformat(start) if isinstance(start, str) else start
    return [(first + timedelta(days=offset)).isoformat() for offset in range(number_of_days)]


def parse_period(value: MealPeriod | str) -> MealPeriod:
    """Meal period from an enum member or a name in any case."""
    if isinstance(value, MealPeriod):
        return value
    try:
        return MealPeriod(str(value).strip().lower())
    except ValueError:
        raise InvalidRequestError(
            f"Unknown meal period {value!r}",
            user_message="Meal type must be breakfast, lunch or dinner.",
        ) from None


@dataclass
class SlotFailure:
    date: str
    period: MealPeriod
    error: Exception

    @property
    def message(self) -> str:
        return user_message_for(self.error)


@dataclass
class PlanGenerationResult:
    plan: MealPlan  # merged plan as persisted
    generated: MealPlan  # only the slots filled by this run
    failures: list[SlotFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures


class PlanGenerationJob:
    """
    Handle on a running bulk generation.

    Cancelling aborts in-flight provider calls; nothing is persisted for a
    cancelled run.
    """

    def __init__(self, task: "asyncio.Task[PlanGenerationResult]"):
        self._task = task

    def cancel(self) -> bool:
        return self._task.cancel()

    def done(self) -> bool:
        return self._task.done()

    def cancelled(self) -> bool:
        return self._task.cancelled()

    async def result(self) -> PlanGenerationResult:
        return await self._task

    def __await__(self):
        return self._task.__await__()


class MealPlanService:
    """Reads, generates and edits the signed-in user's meal plan."""

    def __init__(self, store: DocumentStore, identity: IdentityProvider, generator: MealGenerator):
        self.store = store
        self.identity = identity
        self.generator = generator

    # -------------------------------------------------------------------------
    # Plan document
    # -------------------------------------------------------------------------

    async def load_plan(self) -> MealPlan:
        user_id = require_user(self.identity)
        return MealPlan.from_document(await self.store.get(user_id, MEAL_PLANS))

    async def save_plan(self, plan: MealPlan) -> None:
        user_id = require_user(self.identity)
        await self.store.set(user_id, MEAL_PLANS, plan.to_document())

    async def subscribe_plan(self, on_update: Callable[[MealPlan], None], on_error: OnError) -> Unsubscribe:
        user_id = require_user(self.identity)
        return await self.store.subscribe(
            user_id,
            MEAL_PLANS,
            lambda document: on_update(MealPlan.from_document(document)),
            on_error,
        )

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    async def generate_plan(
        self,
        start_date: date | str,
        number_of_days: int,
        periods: Iterable[MealPeriod | str],
        preferences: UserPreferences,
        on_progress: ProgressCallback | None = None,
    ) -> PlanGenerationResult:
        """Generate every requested slot and merge the results into the stored plan."""
        if number_of_days < 1:
            raise InvalidRequestError(
                f"number_of_days must be >= 1, got {number_of_days}",
                user_message="Please choose at least one day to plan.",
            )

        if isinstance(periods, (str, MealPeriod)):
            periods = [periods]
        requested = {parse_period(p) for p in periods}
        if not requested:
            raise InvalidRequestError(
                "No meal periods selected",
                user_message="Please select at least one meal type to generate.",
            )
        ordered_periods = [p for p in MealPeriod if p in requested]

        require_user(self.identity)

        dates = date_range(start_date, number_of_days)
        total = len(dates) * len(ordered_periods)
        completed = 0
        generated = MealPlan()
        failures: list[SlotFailure] = []

        logger.info(f"Generating {total} meals from {dates[0]} to {dates[-1]}")

        for day in dates:
            for period in ordered_periods:
                try:
                    meal = await self.generator.generate(period, preferences)
                    generated.set_meal(day, period, meal)
                except Exception as e:
                    logger.error(f"Error generating {period.value} for {day}: {e}")
                    failures.append(SlotFailure(day, period, e))

                completed += 1
                if on_progress:
                    on_progress(completed, total)

        # Reload right before writing so edits made during the run survive
        existing = await self.load_plan()
        merged = existing.merge(generated)
        await self.save_plan(merged)

        if failures:
            logger.warning(f"Plan generated with {len(failures)}/{total} empty slots")

        return PlanGenerationResult(plan=merged, generated=generated, failures=failures)

    def start_generation(
        self,
        start_date: date | str,
        number_of_days: int,
        periods: Iterable[MealPeriod | str],
        preferences: UserPreferences,
        on_progress: ProgressCallback | None = None,
    ) -> PlanGenerationJob:
        """Run generate_plan as a cancellable background task."""
        if isinstance(periods, (str, MealPeriod)):
            periods = [periods]
        task = asyncio.create_task(
            self.generate_plan(start_date, number_of_days, list(periods), preferences, on_progress)
        )
        return PlanGenerationJob(task)

    async def generate_meal(self, day: date | str, period: MealPeriod | str, preferences: UserPreferences) -> Meal:
        """Generate one slot, replacing whatever was there. Failures propagate."""
        require_user(self.identity)
        period = parse_period(period)

        meal = await self.generator.generate(period, preferences)

        plan = await self.load_plan()
        plan.set_meal(day, period, meal)
        await self.save_plan(plan)
        return meal

    # -------------------------------------------------------------------------
    # Direct slot edits
    # -------------------------------------------------------------------------

    async def paste_meal(self, meal: Meal, day: date | str, period: MealPeriod | str) -> MealPlan:
        """Put a copy of a meal into a slot."""
        plan = await self.load_plan()
        plan.set_meal(day, parse_period(period), meal.model_copy(deep=True))
        await self.save_plan(plan)
        return plan

    async def delete_meal(self, day: date | str, period: MealPeriod | str) -> MealPlan:
        """Clear a slot; a day left with no meals is removed."""
        plan = await self.load_plan()
        if plan.remove_meal(day, parse_period(period)):
            await self.save_plan(plan)
        return plan

    # -------------------------------------------------------------------------
    # Templates
    # -------------------------------------------------------------------------

    async def save_template(self, name: str) -> MealPlanTemplate:
        """Snapshot the current plan under a name."""
        if not name or not name.strip():
            raise InvalidRequestError("Empty template name", user_message="Please enter a template name")

        user_id = require_user(self.identity)
        plan = await self.load_plan()
        template = MealPlanTemplate(
            id=uuid.uuid4().hex,
            name=name.strip(),
            meals=plan.to_document(),
            created_at=datetime.now(UTC),
        )

        document = await self.store.get(user_id, MEAL_PLAN_TEMPLATES) or {}
        templates = document.get("templates", {})
        templates[template.id] = template.model_dump(mode="json")
        await self.store.set(user_id, MEAL_PLAN_TEMPLATES, {"templates": templates})
        return template

    async def list_templates(self) -> list[MealPlanTemplate]:
        user_id = require_user(self.identity)
        document = await self.store.get(user_id, MEAL_PLAN_TEMPLATES) or {}
        templates = [MealPlanTemplate.model_validate(t) for t in document.get("templates", {}).values()]
        return sorted(templates, key=lambda t: t.created_at)

    async def load_template(self, template_id: str) -> MealPlan:
        """The meals stored in a template (not applied to the current plan)."""
        user_id = require_user(self.identity)
        document = await self.store.get(user_id, MEAL_PLAN_TEMPLATES) or {}
        raw = document.get("templates", {}).get(template_id)
        if raw is None:
            raise InvalidRequestError(f"Template {template_id} not found", user_message="Template not found")
        return MealPlan.from_document(MealPlanTemplate.model_validate(raw).meals)


def plan_stats(plan: MealPlan, start: date | str, end: date | str) -> PlanStats:
    """Calorie total and average macros per meal for dates in [start, end]."""
    first, last = format_date(start), format_date(end)
    meals = [meal for day, _, meal in plan.meals() if first <= day <= last]
    if not meals:
        return PlanStats()

    count = len(meals)
    return PlanStats(
        total_calories=sum(m.calories for m in meals),
        avg_protein=round(sum(m.protein for m in meals) / count),
        avg_carbs=round(sum(m.carbs for m in meals) / count),
        avg_fat=round(sum(m.fat for m in meals) / count),
    )
