"""Counter and dashboard commands."""

from __future__ import annotations

import click

from ..rollups.goals import milestone_message
from ..tracker.service import DashboardSnapshot
from .cli_common import CLIContext, cli_command, handle_cli_error, handle_cli_success, open_service

__all__ = ["register"]


def _strict() -> bool:
    return bool(click.get_current_context().find_root().params.get("strict"))


def _render_dashboard(snapshot: DashboardSnapshot) -> str:
    totals = snapshot.totals
    goal = snapshot.goal
    lines = [
        f"📅 {snapshot.today.isoformat()}",
        f"Today: {totals.today} / {goal.goal} ({round(goal.percent)}%) {goal.message}",
        f"This week: {totals.week}  This month: {totals.month}  Total: {totals.overall}",
        f"Current streak: {snapshot.streaks.current_streak}  Longest: {snapshot.streaks.longest_streak}",
        f"Days applied: {snapshot.days_active} {milestone_message('days', snapshot.days_active)}",
        f"Weekly average: {snapshot.weekly_average}/day",
    ]
    if snapshot.last_active_date:
        lines.append(f"Last active: {snapshot.last_active_date.isoformat()}")
    return "\n".join(lines)


def _counter_result(cmd: str, ctx: CLIContext, action: str, args: dict) -> int:
    try:
        with open_service(_strict()) as service:
            if action == "inc":
                count = service.increment()
            elif action == "dec":
                count = service.decrement()
            elif action == "reset":
                count = service.reset()
            else:
                count = service.set_today(args["count"])
            progress = service.goal()

        data = {"today": count, "goal": progress.to_dict()}
        text = f"Today: {count} / {progress.goal} {progress.message}"
        return handle_cli_success(ctx, data, cmd, args, text=text)
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@click.command("inc")
@cli_command
def inc_command(ctx: CLIContext) -> int:
    """Add one application to today."""
    return _counter_result("counter.inc", ctx, "inc", {})


@click.command("dec")
@cli_command
def dec_command(ctx: CLIContext) -> int:
    """Remove one application from today."""
    return _counter_result("counter.dec", ctx, "dec", {})


@click.command("reset")
@cli_command
def reset_command(ctx: CLIContext) -> int:
    """Set today's count to zero."""
    return _counter_result("counter.reset", ctx, "reset", {})


@click.command("set")
@click.argument("count", type=int)
@cli_command
def set_command(ctx: CLIContext, count: int) -> int:
    """Set today's count to COUNT (0-999)."""
    return _counter_result("counter.set", ctx, "set", {"count": count})


@click.command("status")
@cli_command
def status_command(ctx: CLIContext) -> int:
    """Show the dashboard."""
    cmd = "dashboard.status"
    try:
        with open_service(_strict()) as service:
            snapshot = service.dashboard()
        return handle_cli_success(ctx, snapshot.to_dict(), cmd, {}, text=_render_dashboard(snapshot))
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, {})


@click.command("week")
@cli_command
def week_command(ctx: CLIContext) -> int:
    """Show the current Monday-start week day by day."""
    cmd = "dashboard.week"
    try:
        with open_service(_strict()) as service:
            snapshot = service.dashboard()
        lines = [f"{'→' if day.is_today else ' '} {day.label}: {day.count}" for day in snapshot.week]
        lines.append(f"Average: {snapshot.weekly_average}/day")
        data = {"days": [day.to_dict() for day in snapshot.week], "average": snapshot.weekly_average}
        return handle_cli_success(ctx, data, cmd, {}, text="\n".join(lines))
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, {})


@click.command("chart")
@click.option("--unit", type=click.Choice(["week", "month"]), default="week", show_default=True)
@click.option("--periods", type=int, help="Number of periods (default: 4 weeks or 12 months)")
@cli_command
def chart_command(ctx: CLIContext, unit: str, periods: int | None) -> int:
    """Show weekly or monthly totals, oldest first."""
    cmd = "dashboard.chart"
    args = {"unit": unit, "periods": periods}
    try:
        with open_service(_strict()) as service:
            buckets = service.chart(unit, periods)  # type: ignore[arg-type]
        peak = max((bucket.total for bucket in buckets), default=0)
        lines = []
        for bucket in buckets:
            bar = "█" * (round(bucket.total / peak * 20) if peak else 0)
            lines.append(
                f"{bucket.label:>8} ({bucket.range_label}): {bar} {bucket.total} ({bucket.daily_average}/day)"
            )
        data = [bucket.to_dict(service.timezone) for bucket in buckets]
        return handle_cli_success(ctx, data, cmd, args, text="\n".join(lines))
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@click.command("streak")
@cli_command
def streak_command(ctx: CLIContext) -> int:
    """Show current and longest streak."""
    cmd = "dashboard.streak"
    try:
        with open_service(_strict()) as service:
            streaks = service.streaks()
        data = {**streaks.to_dict(), "message": milestone_message("streak", streaks.current_streak)}
        text = (
            f"🔥 Current streak: {streaks.current_streak} days ({data['message']})\n"
            f"Longest streak: {streaks.longest_streak} days"
        )
        return handle_cli_success(ctx, data, cmd, {}, text=text)
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, {})


@click.command("goal")
@click.option("--set", "new_goal", type=int, help="Store a new daily goal (1-50)")
@cli_command
def goal_command(ctx: CLIContext, new_goal: int | None) -> int:
    """Show progress toward the daily goal, or change the goal."""
    cmd = "goal.show" if new_goal is None else "goal.set"
    args = {"goal": new_goal}
    try:
        with open_service(_strict()) as service:
            if new_goal is not None:
                service.set_daily_goal(new_goal)
            progress = service.goal()
        text = f"{progress.count} / {progress.goal} ({round(progress.percent)}%) {progress.message}"
        return handle_cli_success(ctx, progress.to_dict(), cmd, args, text=text)
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@click.command("adjust-days")
@click.option("--by", "delta", type=int, required=True, help="Days to add (negative to remove)")
@cli_command
def adjust_days_command(ctx: CLIContext, delta: int) -> int:
    """Correct the days-applied figure by a number of days."""
    cmd = "days.adjust"
    args = {"delta": delta}
    try:
        with open_service(_strict()) as service:
            offset = service.adjust_days(delta)
            days = service.days_active()
        data = {"days_active": days, "manual_days_offset": offset}
        return handle_cli_success(ctx, data, cmd, args, text=f"Days applied: {days} (correction {offset:+d})")
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@click.command("clear")
@cli_command
def clear_command(ctx: CLIContext) -> int:
    """Delete all history, settings and logged applications."""
    cmd = "data.clear"
    try:
        if not ctx.confirm("Delete all applytrack data? This cannot be undone."):
            return handle_cli_success(ctx, {"cleared": False}, cmd, {}, text="Aborted")
        with open_service(_strict()) as service:
            service.clear_all()
        return handle_cli_success(ctx, {"cleared": True}, cmd, {}, text="All data cleared")
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, {})


def register(group: click.Group) -> None:
    """Attach counter and dashboard commands to the root group."""
    for command in (
        inc_command,
        dec_command,
        reset_command,
        set_command,
        status_command,
        week_command,
        chart_command,
        streak_command,
        goal_command,
        adjust_days_command,
        clear_command,
    ):
        group.add_command(command)
