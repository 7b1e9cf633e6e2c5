"""
MealMate - Developer CLI.

Usage:
    mealmate plan --days 3          Generate a plan and print it
    mealmate quota                  Show remaining provider calls
    mealmate set-key KEY            Store an upgraded provider key
    mealmate health                 Check configuration

Runs against Supabase when configured, otherwise an in-memory store
signed in as a local dev user.
"""

import asyncio
from datetime import date

import typer
from rich.console import Console
from rich.progress import Progress
from rich.table import Table

app = typer.Typer(
    name="mealmate",
    help="MealMate - meal plan generation from your dietary preferences.",
    add_completion=False,
)
console = Console()

DEV_USER_ID = "local-dev-user"


def _build_tracker():
    from mealmate.config import settings
    from mealmate.db import QuotaStateFile
    from mealmate.quota import QuotaTracker

    return QuotaTracker(QuotaStateFile(settings.quota_state_path))


def _build_store():
    from mealmate.config import settings
    from mealmate.db import InMemoryDocumentStore

    if settings.has_supabase:
        from mealmate.db.supabase_store import SupabaseDocumentStore

        return SupabaseDocumentStore()
    return InMemoryDocumentStore()


@app.command()
def plan(
    days: int = typer.Option(1, "--days", "-d", help="Number of days to plan"),
    start: str | None = typer.Option(None, "--start", "-s", help="Start date (YYYY-MM-DD), default today"),
    meals: str = typer.Option("breakfast,lunch,dinner", "--meals", "-m", help="Comma-separated meal periods"),
    calories: int = typer.Option(2000, "--calories", "-c", help="Daily calorie goal"),
    diet: list[str] = typer.Option([], "--diet", help="Dietary preference (repeatable)"),
    allergy: list[str] = typer.Option([], "--allergy", help="Allergy (repeatable)"),
) -> None:
    """Generate a meal plan and print it."""
    from mealmate.auth import SessionIdentity
    from mealmate.config import configure_logging
    from mealmate.errors import MealMateError, user_message_for
    from mealmate.gateway import SpoonacularGateway
    from mealmate.meals import MealGenerator, MealPlanService, derive_shopping_list
    from mealmate.models import UserPreferences

    configure_logging()

    try:
        preferences = UserPreferences(calorie_goal=calories, dietary_preferences=diet, allergies=allergy)
        periods = [p.strip() for p in meals.split(",") if p.strip()]
    except ValueError as e:
        console.print(f"[red]Invalid options: {e}[/red]")
        raise typer.Exit(1)

    async def run():
        tracker = _build_tracker()
        await tracker.initialize()
        async with SpoonacularGateway(tracker) as gateway:
            service = MealPlanService(_build_store(), SessionIdentity(DEV_USER_ID), MealGenerator(gateway))
            with Progress(console=console, transient=True) as progress:
                task = progress.add_task("Generating meals...", total=None)
                return await service.generate_plan(
                    start or date.today(),
                    days,
                    periods,
                    preferences,
                    on_progress=lambda done, total: progress.update(task, completed=done, total=total),
                )

    try:
        result = asyncio.run(run())
    except (MealMateError, ValueError) as e:
        console.print(f"[red]Error: {user_message_for(e)}[/red]")
        raise typer.Exit(1)

    table = Table(title="Meal Plan")
    table.add_column("Date")
    table.add_column("Meal")
    table.add_column("Recipe")
    table.add_column("kcal", justify="right")
    table.add_column("P/C/F (g)", justify="right")
    for day, period, meal in result.generated.meals():
        table.add_row(day, period.value, meal.name, str(meal.calories), f"{meal.protein}/{meal.carbs}/{meal.fat}")
    console.print(table)

    for failure in result.failures:
        console.print(f"[yellow]{failure.date} {failure.period.value}:[/yellow] {failure.message}")

    items = derive_shopping_list(result.generated)
    console.print(f"\n[dim]{len(items)} unique ingredients for the shopping list[/dim]")


@app.command()
def quota() -> None:
    """Show provider quota for the current window."""

    async def run():
        tracker = _build_tracker()
        await tracker.initialize()
        await tracker.can_call()
        return tracker

    tracker = asyncio.run(run())
    tier = "upgraded" if tracker.state.has_custom_key else "base"
    console.print(f"Tier: [bold]{tier}[/bold] ({tracker.limit} calls/minute)")
    console.print(f"Remaining calls: {tracker.remaining_calls()}")
    console.print(f"Window resets in: {tracker.time_until_reset()}s")


@app.command("set-key")
def set_key(key: str = typer.Argument(..., help="Your recipe provider API key")) -> None:
    """Store an upgraded provider key for higher limits."""

    async def run():
        tracker = _build_tracker()
        await tracker.initialize()
        return await tracker.set_upgraded_key(key)

    if asyncio.run(run()):
        console.print("[green]OK[/green] Key accepted - upgraded limits active")
    else:
        console.print("[red]FAIL[/red] Key looks invalid - staying on the base tier")
        raise typer.Exit(1)


@app.command()
def health() -> None:
    """Check configuration."""
    from mealmate.config import get_settings

    console.print("\n[bold]MealMate Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("[green]OK[/green] Configuration loaded")
        console.print(f"   Environment: {settings.mealmate_env}")
        console.print(f"   Log level: {settings.log_level}")

        if settings.recipe_api_key:
            console.print("[green]OK[/green] Recipe provider key configured")
        else:
            console.print("[yellow]WARN[/yellow] No shared recipe provider key (RECIPE_API_KEY)")

        if settings.has_supabase:
            console.print("[green]OK[/green] Supabase configured")
        else:
            console.print("[dim]INFO[/dim] Supabase not configured, using in-memory store")

    except Exception as e:
        console.print(f"\n[red]FAIL Configuration error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from mealmate import __version__

    console.print(f"MealMate version {__version__}")


if __name__ == "__main__":
    app()
