"""CLI interface using Typer."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from burnrate.config import Settings, get_settings, reload_settings
from burnrate.data.observation_loader import ObservationLoader
from burnrate.profiles.body_calc import BodyProfile, formula_estimate
from burnrate.tracking.diagnostics import analyze_activity_contribution, get_regression_analysis
from burnrate.tracking.estimator import build_estimate_history, estimate_tdee
from burnrate.tracking.forecast import (
    compare_estimates,
    predict_future_weight,
    predict_goal_date,
    project_daily_expenditure,
    select_best_estimate,
)
from burnrate.tracking.models import DailyObservation, Estimate
from burnrate.tracking.quality import check_data_quality
from burnrate.utils.logging_config import setup_logging

app = typer.Typer(
    help="Adaptive TDEE estimation from logged weight, intake and activity",
    no_args_is_help=True,
)
console = Console()

CSV_ARGUMENT = typer.Argument(..., help="CSV with date,weight,calories[,is_complete][,net_steps][,workout_calories]")
AS_OF_OPTION = typer.Option(
    None, "--as-of", formats=["%Y-%m-%d"], help="Reference date (default: last logged day)"
)
WEIGHT_OPTION = typer.Option(None, "--weight", "-w", help="Current weight (default: last logged weight)")
JSON_OPTION = typer.Option(False, "--json", help="Output as JSON")


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2, default=_json_default)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def _json_default(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def fail(message: str, json_output: bool, suggestions: Optional[list[str]] = None) -> NoReturn:
    """Report an error in the selected output format and exit with status 1."""
    if json_output:
        payload: dict[str, Any] = {"success": False, "errors": [message]}
        if suggestions:
            payload["suggestions"] = suggestions
        output_json(payload)
    else:
        console.print(f"[red]{message}[/red]")
        for suggestion in suggestions or []:
            console.print(f"[dim]{suggestion}[/dim]")
    raise typer.Exit(1)


def load_csv(csv_path: Path, json_output: bool) -> list[DailyObservation]:
    """Load observations, converting loader errors into CLI errors."""
    try:
        observations = ObservationLoader().load_from_csv(csv_path)
    except (FileNotFoundError, ValueError) as e:
        fail(str(e), json_output)

    if not observations:
        fail(
            f"No observations found in {csv_path}",
            json_output,
            ["Log your weight and calories daily"],
        )
    return observations


def resolve_inputs(
    observations: list[DailyObservation],
    as_of: Optional[datetime],
    weight: Optional[float],
    json_output: bool,
) -> tuple[date, float]:
    """Reference date and current weight, defaulting to the latest logged day."""
    reference = as_of.date() if as_of is not None else max(obs.date for obs in observations)

    if weight is None:
        logged = [obs for obs in observations if obs.date <= reference and obs.weight > 0]
        if not logged:
            fail(f"No weight logged on or before {reference.isoformat()}", json_output)
        weight = max(logged, key=lambda obs: obs.date).weight
    elif weight <= 0:
        fail(f"Weight must be positive, got {weight}", json_output)

    return reference, weight


def require_estimate(
    observations: list[DailyObservation],
    current_weight: float,
    reference: date,
    settings: Settings,
    json_output: bool,
    include_history: bool = False,
) -> Estimate:
    """Run the estimator or exit with an insufficient-data error."""
    estimate = estimate_tdee(
        observations,
        current_weight,
        settings.estimator,
        as_of=reference,
        include_history=include_history,
    )
    if estimate is None:
        fail(
            "Not enough data for an adaptive estimate "
            f"(need {settings.estimator.min_data_points} usable days "
            f"in the last {settings.estimator.window_days})",
            json_output,
            ["Log weight and calories daily, marking days where every meal was logged"],
        )
    return estimate


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Adaptive TDEE estimation."""
    try:
        settings = reload_settings(config) if config is not None else get_settings()
    except (TypeError, ValueError) as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)
    setup_logging("DEBUG" if verbose else settings.logging.level)


# ============================================================================
# Commands
# ============================================================================


@app.command()
def estimate(
    csv_path: Path = CSV_ARGUMENT,
    weight: Optional[float] = WEIGHT_OPTION,
    as_of: Optional[datetime] = AS_OF_OPTION,
    age: Optional[int] = typer.Option(None, "--age", help="Age for formula fallback"),
    sex: Optional[str] = typer.Option(None, "--sex", help="male or female (formula fallback)"),
    height: Optional[float] = typer.Option(None, "--height", help="Height in inches (formula fallback)"),
    activity: str = typer.Option("moderate", "--activity", help="Activity level (formula fallback)"),
    json_output: bool = JSON_OPTION,
) -> None:
    """Estimate TDEE from logged data.

    With --age, --sex and --height a Mifflin-St Jeor estimate is also
    computed; it is used when the adaptive estimate is not yet trustworthy.
    """
    settings = get_settings()
    observations = load_csv(csv_path, json_output)
    reference, current_weight = resolve_inputs(observations, as_of, weight, json_output)

    adaptive = estimate_tdee(observations, current_weight, settings.estimator, as_of=reference)

    formula = None
    if age is not None and sex is not None and height is not None:
        try:
            profile = BodyProfile(
                age=age, sex=sex, height_inches=height, weight_lbs=current_weight,
                activity_level=activity,
            )
        except ValueError as e:
            fail(str(e), json_output)
        formula = formula_estimate(profile, as_of=reference)

    best = select_best_estimate(adaptive, formula) if formula is not None else adaptive
    if best is None:
        fail(
            "Not enough data for an adaptive estimate "
            f"(need {settings.estimator.min_data_points} usable days "
            f"in the last {settings.estimator.window_days})",
            json_output,
            ["Pass --age, --sex and --height for a formula estimate in the meantime"],
        )

    comparison = compare_estimates(adaptive, formula) if formula is not None else None

    if json_output:
        data: dict[str, Any] = {"estimate": best.to_dict()}
        if comparison is not None:
            data["comparison"] = {
                "adaptive": comparison.adaptive,
                "formula": comparison.formula,
                "difference": comparison.difference,
                "percent_difference": comparison.percent_difference,
            }
        output_json({
            "success": True,
            "command": "estimate",
            "data": data,
            "human_summary": (
                f"TDEE: {best.estimated_tdee} kcal/day "
                f"({best.base_rate:.1f} kcal per unit, {best.confidence.value})"
            ),
        })
        return

    console.print(f"[bold]Estimated TDEE: {best.estimated_tdee} kcal/day[/bold] ({best.source.value})")
    console.print(f"  Burn rate: {best.base_rate:.1f} kcal per unit body weight at {best.current_weight:.1f}")
    console.print(f"  Confidence: {best.confidence.value} ({best.confidence_score}/100)")
    console.print(
        f"  Data: {best.data_points_used} days, {best.outliers_excluded} outliers excluded, "
        f"R² {best.r_squared:.2f}"
    )
    if best.breakdown is not None and (best.breakdown.steps or best.breakdown.workout):
        console.print(
            f"  Breakdown: base {best.breakdown.base} + steps {best.breakdown.steps} "
            f"+ workouts {best.breakdown.workout}"
        )
    if comparison is not None and comparison.adaptive is not None:
        console.print(
            f"  vs formula ({comparison.formula}): {comparison.difference:+d} kcal "
            f"({comparison.percent_difference:+d}%)"
        )


@app.command()
def history(
    csv_path: Path = CSV_ARGUMENT,
    as_of: Optional[datetime] = AS_OF_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Show how the burn rate estimate converged over time."""
    settings = get_settings()
    observations = load_csv(csv_path, json_output)
    reference, _ = resolve_inputs(observations, as_of, None, json_output)

    points = build_estimate_history(observations, settings.estimator, as_of=reference)
    if not points:
        fail(
            f"Not enough data for a history (need {settings.estimator.history_min_points} usable days)",
            json_output,
        )

    if json_output:
        output_json({
            "success": True,
            "command": "history",
            "data": {
                "history": [
                    {
                        "date": point.date,
                        "burn_rate": point.burn_rate,
                        "confidence_score": point.confidence_score,
                    }
                    for point in points
                ],
            },
            "human_summary": f"{len(points)} estimates, latest burn rate {points[-1].burn_rate:.1f}",
        })
        return

    table = Table(title="Burn rate history")
    table.add_column("Date", style="cyan")
    table.add_column("Burn rate", justify="right")
    table.add_column("Confidence", justify="right", style="dim")
    for point in points:
        table.add_row(point.date.isoformat(), f"{point.burn_rate:.1f}", str(point.confidence_score))
    console.print(table)


@app.command()
def forecast(
    csv_path: Path = CSV_ARGUMENT,
    calories: float = typer.Option(..., "--calories", "-c", help="Planned daily intake"),
    days: int = typer.Option(28, "--days", "-d", help="Days to project"),
    weight: Optional[float] = WEIGHT_OPTION,
    as_of: Optional[datetime] = AS_OF_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Project weight on a constant daily intake."""
    if days < 0:
        fail(f"--days must be non-negative, got {days}", json_output)

    settings = get_settings()
    observations = load_csv(csv_path, json_output)
    reference, current_weight = resolve_inputs(observations, as_of, weight, json_output)
    est = require_estimate(observations, current_weight, reference, settings, json_output)

    result = predict_future_weight(
        est,
        current_weight,
        calories,
        days,
        as_of=reference,
        config=settings.estimator.forecast,
        energy_per_unit=settings.estimator.fitter.energy_per_unit,
    )
    low, high = result.confidence_range

    if json_output:
        output_json({
            "success": True,
            "command": "forecast",
            "data": {
                "target_date": result.target_date,
                "predicted_weight": result.predicted_weight,
                "confidence_range": [low, high],
                "assumed_daily_calories": result.assumed_daily_calories,
                "days_from_now": result.days_from_now,
                "estimated_tdee": est.estimated_tdee,
            },
            "human_summary": (
                f"{result.predicted_weight:.1f} on {result.target_date.isoformat()} "
                f"(range {low:.1f}-{high:.1f})"
            ),
        })
        return

    console.print(
        f"[bold]{result.predicted_weight:.1f}[/bold] on {result.target_date.isoformat()} "
        f"eating {calories:.0f} kcal/day (TDEE {est.estimated_tdee})"
    )
    console.print(f"  Range: {low:.1f} - {high:.1f}")


@app.command()
def goal(
    csv_path: Path = CSV_ARGUMENT,
    target: float = typer.Option(..., "--target", "-t", help="Target weight"),
    calories: float = typer.Option(..., "--calories", "-c", help="Planned daily intake"),
    weight: Optional[float] = WEIGHT_OPTION,
    as_of: Optional[datetime] = AS_OF_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Estimate when a target weight is reached."""
    settings = get_settings()
    observations = load_csv(csv_path, json_output)
    reference, current_weight = resolve_inputs(observations, as_of, weight, json_output)
    est = require_estimate(observations, current_weight, reference, settings, json_output)

    result = predict_goal_date(
        est,
        current_weight,
        target,
        calories,
        as_of=reference,
        config=settings.estimator.forecast,
        energy_per_unit=settings.estimator.fitter.energy_per_unit,
    )
    if result is None:
        fail(
            f"Eating {calories:.0f} kcal/day does not move weight toward {target:.1f} "
            f"(TDEE {est.estimated_tdee})",
            json_output,
        )

    earliest, latest = result.confidence_range

    if json_output:
        output_json({
            "success": True,
            "command": "goal",
            "data": {
                "target_weight": result.target_weight,
                "estimated_date": result.estimated_date,
                "days_required": result.days_required,
                "confidence_range": [earliest, latest],
                "required_daily_calories": result.required_daily_calories,
            },
            "human_summary": (
                f"{result.target_weight:.1f} around {result.estimated_date.isoformat()} "
                f"({result.days_required} days)"
            ),
        })
        return

    console.print(
        f"[bold]{result.target_weight:.1f}[/bold] around {result.estimated_date.isoformat()} "
        f"({result.days_required} days)"
    )
    console.print(f"  Between {earliest.isoformat()} and {latest.isoformat()}")


@app.command()
def today(
    csv_path: Path = CSV_ARGUMENT,
    steps: float = typer.Option(0.0, "--steps", help="Total steps reported today"),
    workout_steps: Optional[list[float]] = typer.Option(
        None, "--workout-steps", help="Steps taken during a logged workout (repeatable)"
    ),
    workout_calories: float = typer.Option(0.0, "--workout-calories", help="Logged workout kcal"),
    weight: Optional[float] = WEIGHT_OPTION,
    as_of: Optional[datetime] = AS_OF_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Project today's expenditure from today's activity."""
    settings = get_settings()
    observations = load_csv(csv_path, json_output)
    reference, current_weight = resolve_inputs(observations, as_of, weight, json_output)
    est = require_estimate(observations, current_weight, reference, settings, json_output)

    projection = project_daily_expenditure(
        est,
        current_weight,
        total_steps=steps,
        workout_step_overlaps=workout_steps or [],
        workout_calories=workout_calories,
    )

    if json_output:
        output_json({
            "success": True,
            "command": "today",
            "data": {
                "base_tdee": projection.base_tdee,
                "step_expenditure": projection.step_expenditure,
                "workout_expenditure": projection.workout_expenditure,
                "total_tdee": projection.total_tdee,
                "vs_average": projection.vs_average,
            },
            "human_summary": (
                f"Today: {projection.total_tdee} kcal ({projection.vs_average:+d} vs average day)"
            ),
        })
        return

    table = Table(title=f"Projected expenditure ({reference.isoformat()})")
    table.add_column("Component")
    table.add_column("kcal", justify="right", style="green")
    table.add_row("Base", str(projection.base_tdee))
    table.add_row("Steps", str(projection.step_expenditure))
    table.add_row("Workouts", str(projection.workout_expenditure))
    table.add_row("[bold]Total[/bold]", f"[bold]{projection.total_tdee}[/bold]")
    console.print(table)
    console.print(f"  {projection.vs_average:+d} kcal vs an average day")


@app.command()
def quality(
    csv_path: Path = CSV_ARGUMENT,
    json_output: bool = JSON_OPTION,
) -> None:
    """Check logged data for gaps and inconsistencies."""
    observations = load_csv(csv_path, json_output)
    report = check_data_quality(observations)

    if json_output:
        output_json({
            "success": True,
            "command": "quality",
            "data": {
                "is_valid": report.is_valid,
                "issues": report.issues,
                "suggestions": report.suggestions,
                "days_with_data": report.days_with_data,
                "days_with_gaps": report.days_with_gaps,
                "complete_days": report.complete_days,
            },
            "human_summary": (
                "Data looks good" if not report.issues else f"{len(report.issues)} issue(s) found"
            ),
        })
        return

    status = "[green]OK[/green]" if report.is_valid else "[yellow]Needs attention[/yellow]"
    console.print(f"Data quality: {status}")
    console.print(
        f"  {report.days_with_data} days logged, {report.complete_days} complete, "
        f"{report.days_with_gaps} missing"
    )
    for issue, suggestion in zip(report.issues, report.suggestions):
        console.print(f"  [yellow]- {issue}[/yellow]")
        console.print(f"    [dim]{suggestion}[/dim]")


@app.command()
def analysis(
    csv_path: Path = CSV_ARGUMENT,
    weight: Optional[float] = WEIGHT_OPTION,
    as_of: Optional[datetime] = AS_OF_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Actual vs predicted daily weight change, and activity contribution."""
    settings = get_settings()
    observations = load_csv(csv_path, json_output)
    reference, current_weight = resolve_inputs(observations, as_of, weight, json_output)

    result = get_regression_analysis(
        observations, current_weight, settings.estimator, as_of=reference
    )
    if result is None:
        fail("Not enough consecutive days for a regression analysis", json_output)

    est = estimate_tdee(
        observations, current_weight, settings.estimator, as_of=reference, include_history=False
    )
    contribution = analyze_activity_contribution(est) if est is not None else None

    if json_output:
        data: dict[str, Any] = {
            "base_rate": result.base_rate,
            "estimated_tdee": result.estimated_tdee,
            "r_squared": result.r_squared,
            "standard_error": result.standard_error,
            "pairs_excluded": result.pairs_excluded,
            "points": [
                {
                    "date": point.date,
                    "weight": point.weight,
                    "calories": point.calories,
                    "actual_change": point.actual_change,
                    "predicted_change": point.predicted_change,
                    "residual": point.residual,
                }
                for point in result.points
            ],
        }
        if contribution is not None:
            data["activity_contribution"] = {
                "base_percent": contribution.base_percent,
                "steps_percent": contribution.steps_percent,
                "workout_percent": contribution.workout_percent,
                "insights": contribution.insights,
            }
        output_json({
            "success": True,
            "command": "analysis",
            "data": data,
            "human_summary": (
                f"{len(result.points)} pairs, R² {result.r_squared:.2f}, "
                f"burn rate {result.base_rate:.1f}"
            ),
        })
        return

    table = Table(title=f"Daily change: actual vs predicted (burn rate {result.base_rate:.1f})")
    table.add_column("Date", style="cyan")
    table.add_column("Calories", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Predicted", justify="right")
    table.add_column("Residual", justify="right", style="dim")
    for point in result.points:
        table.add_row(
            point.date.isoformat(),
            f"{point.calories:.0f}",
            f"{point.actual_change:+.2f}",
            f"{point.predicted_change:+.2f}",
            f"{point.residual:+.2f}",
        )
    console.print(table)
    console.print(f"  R² {result.r_squared:.2f}, {result.pairs_excluded} pairs excluded")

    if contribution is not None:
        console.print(
            f"  Expenditure: base {contribution.base_percent}%, steps {contribution.steps_percent}%, "
            f"workouts {contribution.workout_percent}%"
        )
        for insight in contribution.insights:
            console.print(f"  [dim]{insight}[/dim]")


if __name__ == "__main__":
    app()
