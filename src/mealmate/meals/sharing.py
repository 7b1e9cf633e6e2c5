"""
MealMate - Plan sharing.

Renders one day of a meal plan as plain text for a share sheet or message.
Handing the text to the platform is the caller's job.
"""

from datetime import date

from mealmate.models import Meal, MealPeriod, MealPlan, format_date

NO_PLAN_MESSAGE = "No meal plan available for this date."
SHARE_FOOTER = "Shared from MealMate"


def readable_date(day: date | str) -> str:
    """e.g. 'Wednesday, May 1, 2024'."""
    d = date.fromisoformat(format_date(day))
    return f"{d:%A}, {d:%b} {d.day}, {d.year}"


def _macro_line(calories: int, protein: int, carbs: int, fat: int) -> str:
    return f"Calories: {calories} | Protein: {protein}g | Carbs: {carbs}g | Fat: {fat}g"


def format_day_for_sharing(plan: MealPlan, day: date | str) -> str:
    """Each populated slot with its macros, then the day's totals."""
    key = format_date(day)
    entry = plan.days.get(key)
    if entry is None or entry.is_empty():
        return NO_PLAN_MESSAGE

    lines = [f"MY MEAL PLAN FOR {readable_date(key).upper()}", ""]
    meals: list[Meal] = []

    for period in MealPeriod:
        meal = entry.get(period)
        if meal is None:
            continue
        meals.append(meal)
        lines.append(period.value.upper())
        lines.append(meal.name)
        # Zero calories means the provider sent no nutrition
        if meal.calories:
            lines.append(_macro_line(meal.calories, meal.protein, meal.carbs, meal.fat))
        lines.append("")

    lines.append("DAILY TOTALS")
    lines.append(
        _macro_line(
            sum(m.calories for m in meals),
            sum(m.protein for m in meals),
            sum(m.carbs for m in meals),
            sum(m.fat for m in meals),
        )
    )
    lines.append("")
    lines.append(SHARE_FOOTER)
    return "\n".join(lines)
