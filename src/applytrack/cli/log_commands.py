"""Job-log and export commands."""

from __future__ import annotations

from pathlib import Path

import click

from ..applications.export import export_csv, export_filename
from ..applications.records import ApplicationRecord, ApplicationStatus, filter_records
from ..core.time import parse_calendar_date
from ..tracker.service import JobLogSummary
from .cli_common import CLIContext, cli_command, handle_cli_error, handle_cli_success, open_service

__all__ = ["export_command", "log_cli"]

STATUS_CHOICES = click.Choice([status.value for status in ApplicationStatus], case_sensitive=False)
CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _optional_date(value: str | None):
    return parse_calendar_date(value) if value else None


def _record_line(record: ApplicationRecord) -> str:
    return f"{record.id}  {record.date_applied.isoformat()}  {record.status.value:<12} {record.company_name} - {record.job_title}"


@click.group(context_settings=CONTEXT_SETTINGS, help="Log individual job applications")
def log_cli() -> None:
    """Root command for the job log."""


@log_cli.command("add")
@click.option("--company", required=True, help="Company name")
@click.option("--title", required=True, help="Job title")
@click.option("--date", "date_applied", type=str, help="Date applied (YYYY-MM-DD, default: today)")
@click.option("--url", default="", help="Application URL")
@click.option("--notes", default="", help="Notes")
@click.option("--status", type=STATUS_CHOICES, default=ApplicationStatus.APPLIED.value, show_default=True)
@cli_command
def add_command(
    ctx: CLIContext,
    company: str,
    title: str,
    date_applied: str | None,
    url: str,
    notes: str,
    status: str,
) -> int:
    """Log a job application."""
    cmd = "log.add"
    args = {"company": company, "title": title, "date": date_applied, "status": status}
    try:
        with open_service() as service:
            record = ApplicationRecord(
                company_name=company,
                job_title=title,
                date_applied=_optional_date(date_applied) or service.today(),
                application_url=url,
                notes=notes,
                status=ApplicationStatus.parse(status),
            )
            service.log_application(record)
        return handle_cli_success(ctx, record.to_dict(), cmd, args, text=f"✅ Logged {_record_line(record)}")
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@log_cli.command("list")
@click.option("--from", "start", type=str, help="Earliest date applied (YYYY-MM-DD)")
@click.option("--to", "end", type=str, help="Latest date applied (YYYY-MM-DD)")
@click.option("--status", type=STATUS_CHOICES, help="Only this status")
@cli_command
def list_command(ctx: CLIContext, start: str | None, end: str | None, status: str | None) -> int:
    """List logged applications, newest first."""
    cmd = "log.list"
    args = {"from": start, "to": end, "status": status}
    try:
        with open_service() as service:
            records = filter_records(
                service.store.list_applications(),
                start=_optional_date(start),
                end=_optional_date(end),
                status=status,
            )
            summary = service.job_log_summary()
        text = "\n".join(_record_line(record) for record in records) or "No applications logged"
        data = {"applications": [record.to_dict() for record in records], "summary": summary.to_dict()}
        return handle_cli_success(ctx, data, cmd, args, meta={"count": len(records)}, text=text)
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@log_cli.command("status")
@click.argument("record_id")
@click.argument("status", type=STATUS_CHOICES)
@cli_command
def status_command(ctx: CLIContext, record_id: str, status: str) -> int:
    """Change the status of application RECORD_ID."""
    cmd = "log.status"
    args = {"record_id": record_id, "status": status}
    try:
        with open_service() as service:
            record = service.update_status(record_id, status)
        return handle_cli_success(ctx, record.to_dict(), cmd, args, text=f"Updated {_record_line(record)}")
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@log_cli.command("delete")
@click.argument("record_id")
@cli_command
def delete_command(ctx: CLIContext, record_id: str) -> int:
    """Delete application RECORD_ID."""
    cmd = "log.delete"
    args = {"record_id": record_id}
    try:
        with open_service() as service:
            service.delete_application(record_id)
        return handle_cli_success(ctx, {"deleted": record_id}, cmd, args, text=f"Deleted {record_id}")
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


def _render_stats(summary: JobLogSummary) -> str:
    lines = [
        f"Applications: {summary.total}  Today: {summary.today_count}  Days applied: {summary.days_applied}",
        f"Current streak: {summary.streaks.current_streak}  Longest: {summary.streaks.longest_streak}",
        "Last 7 days:",
    ]
    lines.extend(f"  {day.label}: {day.count}" for day in summary.last_7_days)
    lines.append("Weekly:")
    lines.extend(f"  {bucket.label} ({bucket.range_label}): {bucket.total}" for bucket in summary.weekly)
    lines.append("Status: " + ", ".join(f"{name} {count}" for name, count in summary.by_status.items()))
    return "\n".join(lines)


@log_cli.command("stats")
@cli_command
def stats_command(ctx: CLIContext) -> int:
    """Show analytics computed from the job log."""
    cmd = "log.stats"
    try:
        with open_service() as service:
            summary = service.job_log_summary()
        return handle_cli_success(ctx, summary.to_dict(), cmd, {}, text=_render_stats(summary))
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, {})


@click.command("export")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="CSV file to write")
@click.option("--from", "start", type=str, help="Earliest date applied (YYYY-MM-DD)")
@click.option("--to", "end", type=str, help="Latest date applied (YYYY-MM-DD)")
@click.option("--status", type=STATUS_CHOICES, help="Only this status")
@cli_command
def export_command(
    ctx: CLIContext,
    output: Path | None,
    start: str | None,
    end: str | None,
    status: str | None,
) -> int:
    """Export logged applications to CSV."""
    cmd = "log.export"
    args = {"output": str(output) if output else None, "from": start, "to": end, "status": status}
    try:
        with open_service() as service:
            records = filter_records(
                service.store.list_applications(),
                start=_optional_date(start),
                end=_optional_date(end),
                status=status,
            )
            path = output or Path(export_filename(service.today()))

        with open(path, "w", encoding="utf-8", newline="") as f:
            written = export_csv(records, f)

        data = {"path": str(path), "records": written}
        return handle_cli_success(ctx, data, cmd, args, text=f"📄 Exported {written} applications to {path}")
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)
