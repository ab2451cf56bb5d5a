"""Common CLI utilities: JSON output envelope, stable exit codes and the command log."""

from __future__ import annotations

import functools
import json
import traceback
import uuid
from enum import IntEnum
from typing import Any, Callable

import click

from ..config.settings import ConfigError, get_settings
from ..core.errors import InvalidEvent, RecordNotFound, RolloverWarning, StoreError
from ..observability.loguru_config import get_logger
from ..storage.sqlite_store import SQLiteStore
from ..tracker.service import TrackerService

__all__ = [
    "CLIContext",
    "ExitCode",
    "cli_command",
    "exit_code_for",
    "handle_cli_error",
    "handle_cli_success",
    "open_service",
]

logger = get_logger("cli")


class ExitCode(IntEnum):
    """Stable exit codes for CLI commands."""

    SUCCESS = 0  # Successful execution
    VALIDATION_ERROR = 2  # Invalid count, date, goal or status
    NOT_FOUND = 3  # Unknown application id
    ROLLOVER_WARNING = 4  # Clock skew or stale rollover in strict mode
    STORE_ERROR = 5  # Database or file error
    CONFIG_ERROR = 6  # Configuration error
    UNKNOWN_ERROR = 7  # Unknown/unexpected error


class CLIContext:
    """Context for CLI execution with JSON output and trace ID."""

    def __init__(
        self,
        json_output: bool = False,
        yes: bool = False,
        trace_id: str | None = None,
        verbose: bool = False,
    ):
        """Initialize CLI context.

        Args:
            json_output: Enable JSON output mode
            yes: Non-interactive mode (assume yes)
            trace_id: Trace ID for correlation
            verbose: Verbose output
        """
        self.json_output = json_output
        self.yes = yes
        self.trace_id = trace_id or f"trace-{uuid.uuid4().hex[:12]}"
        self.verbose = verbose

    def output(
        self, data: Any, status: str = "success", error: str | None = None, meta: dict[str, Any] | None = None
    ) -> None:
        """Output result in appropriate format.

        Args:
            data: Result data
            status: Status ("success", "error", "warning")
            error: Error message if status is error
            meta: Additional metadata
        """
        if self.json_output:
            # JSON mode: print only JSON
            result: dict[str, Any] = {"status": status, "trace_id": self.trace_id}

            if error:
                result["error"] = error
            else:
                result["data"] = data

            if meta:
                result["meta"] = meta

            click.echo(json.dumps(result, ensure_ascii=False, indent=2))
        else:
            if status == "error":
                click.echo(f"❌ {error}")
            elif status == "warning":
                click.echo(f"⚠️  {data}")
            elif isinstance(data, dict):
                for key, value in data.items():
                    click.echo(f"{key}: {value}")
            elif isinstance(data, list):
                for item in data:
                    click.echo(f"  - {item}")
            elif data is not None:
                click.echo(data)

    def log_command(self, cmd: str, args: dict[str, Any], result: dict[str, Any]) -> None:
        """Record the command in the cli log."""
        logger.bind(trace_id=self.trace_id).info(f"Command {cmd} finished", command=cmd, args=args, result=result)

    def confirm(self, message: str) -> bool:
        """Ask for confirmation (or auto-confirm in yes mode)."""
        if self.yes:
            return True

        if self.json_output:
            # In JSON mode, can't ask for confirmation
            raise click.ClickException("Cannot confirm in --json mode. Use --yes for non-interactive execution.")

        return click.confirm(message)


def cli_command(func: Callable[..., int]) -> Callable[..., int]:
    """Decorator to add common CLI options to commands.

    Adds:
    - --json: JSON output mode
    - --yes: Non-interactive mode
    - --trace-id: Trace ID for correlation
    - --verbose: Verbose output

    A non-zero return value becomes the process exit code.
    """

    @click.option("--json", "json_output", is_flag=True, help="Output as JSON (machine-readable)")
    @click.option("--yes", is_flag=True, help="Non-interactive mode (assume yes)")
    @click.option("--trace-id", type=str, help="Trace ID for correlation")
    @click.option("--verbose", "-v", is_flag=True, help="Verbose output")
    @functools.wraps(func)
    def wrapper(
        json_output: bool,
        yes: bool,
        trace_id: str | None,
        verbose: bool,
        *args: Any,
        **kwargs: Any,
    ) -> int:
        ctx = CLIContext(json_output=json_output, yes=yes, trace_id=trace_id, verbose=verbose)

        code = func(ctx, *args, **kwargs)
        if code:
            click.get_current_context().exit(code)
        return code

    return wrapper


def exit_code_for(exc: BaseException) -> ExitCode:
    """Map an exception to its stable exit code."""
    if isinstance(exc, RecordNotFound):
        return ExitCode.NOT_FOUND
    if isinstance(exc, RolloverWarning):
        return ExitCode.ROLLOVER_WARNING
    if isinstance(exc, ConfigError):
        return ExitCode.CONFIG_ERROR
    if isinstance(exc, (InvalidEvent, ValueError, click.ClickException)):
        return ExitCode.VALIDATION_ERROR
    if isinstance(exc, (StoreError, OSError)):
        return ExitCode.STORE_ERROR
    return ExitCode.UNKNOWN_ERROR


def _error_message(exc: BaseException) -> str:
    # KeyError subclasses render their argument with quotes
    if isinstance(exc, RecordNotFound):
        return f"Application not found: {exc.args[0]}"
    return str(exc)


def handle_cli_error(ctx: CLIContext, exc: Exception, cmd: str, args: dict[str, Any]) -> int:
    """Output the error and return the matching exit code."""
    exit_code = exit_code_for(exc)
    error_msg = _error_message(exc)

    result: dict[str, Any] = {
        "status": "error",
        "error": error_msg,
        "error_type": type(exc).__name__,
        "exit_code": int(exit_code),
    }
    if isinstance(exc, RolloverWarning):
        result["code"] = exc.code

    if ctx.verbose:
        result["traceback"] = traceback.format_exc()

    ctx.log_command(cmd, args, result)

    meta: dict[str, Any] = {"exit_code": int(exit_code), "error_type": type(exc).__name__}
    ctx.output(None, status="error", error=error_msg, meta=meta)

    if ctx.verbose and not ctx.json_output:
        click.echo("\nTraceback:", err=True)
        traceback.print_exc()

    return int(exit_code)


def handle_cli_success(
    ctx: CLIContext,
    data: Any,
    cmd: str,
    args: dict[str, Any],
    meta: dict[str, Any] | None = None,
    text: str | None = None,
) -> int:
    """Output the result and return the success code.

    ``text`` replaces the generic rendering of ``data`` in human mode.
    """
    result: dict[str, Any] = {"status": "success", "exit_code": 0}
    if meta:
        result["meta"] = meta

    ctx.log_command(cmd, args, result)

    if text is not None and not ctx.json_output:
        click.echo(text)
    else:
        ctx.output(data, status="success", meta=meta)

    return int(ExitCode.SUCCESS)


def open_service(strict: bool = False) -> TrackerService:
    """Build the tracker service from the loaded settings."""
    settings = get_settings()
    store = SQLiteStore(settings.db_path, settings.user_id)
    return TrackerService(
        store,
        timezone=settings.timezone,
        daily_goal=settings.daily_goal,
        retention_days=settings.retention_days,
        strict=strict,
    )
