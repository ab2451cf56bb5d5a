#!/usr/bin/env python3
"""Main CLI module for applytrack."""

import sys
from pathlib import Path

import click

from ..config.settings import ConfigError, load_settings
from ..core.time import set_default_timezone
from ..observability.loguru_config import configure_loguru
from . import tracker_commands
from .cli_common import ExitCode
from .log_commands import export_command, log_cli

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
EPILOG = """
Examples:
  applytrack inc                      # One more application today
  applytrack set 4                    # Today's count is 4
  applytrack status                   # Dashboard
  applytrack chart --unit month       # Last 12 months
  applytrack goal --set 8             # New daily goal
  applytrack log add --company Acme --title "Data Engineer"
  applytrack log status app-1a2b3c4d5e6f Interviewing
  applytrack export --status Offer    # CSV of offers
  applytrack status --json            # Machine-readable output
""".strip()


@click.group(
    context_settings=CONTEXT_SETTINGS,
    help="applytrack - job application counter and dashboard",
    epilog=EPILOG,
)
@click.option("--env-file", type=click.Path(dir_okay=False, path_type=Path), help="Settings file (default: .env)")
@click.option("--strict", is_flag=True, help="Fail on clock skew or stale rollover instead of warning")
@click.option("--debug", is_flag=True, help="Log to stderr at DEBUG level")
@click.pass_context
def cli(ctx: click.Context, env_file: Path | None, strict: bool, debug: bool) -> None:
    """Root command: load settings and configure logging."""
    try:
        settings = load_settings(env_file)
    except ConfigError as exc:
        click.echo(f"❌ Configuration error: {exc}", err=True)
        ctx.exit(int(ExitCode.CONFIG_ERROR))

    set_default_timezone(settings.timezone)
    configure_loguru(
        log_dir=settings.log_dir,
        level="DEBUG" if debug else settings.log_level,
        enable_console=debug,
    )


tracker_commands.register(cli)
cli.add_command(log_cli, "log")
cli.add_command(export_command, "export")


def main(args: list[str] | None = None) -> int:
    """CLI entry point."""
    try:
        normalized_args = list(args) if args is not None else None
        result = cli.main(args=normalized_args, standalone_mode=False)
        return int(result) if isinstance(result, int) else 0
    except click.ClickException as exc:
        exc.show()
        return int(ExitCode.VALIDATION_ERROR)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except SystemExit as exc:  # pragma: no cover - click normalizes exit codes
        return int(exc.code) if exc.code is not None else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
