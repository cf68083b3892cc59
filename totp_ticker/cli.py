"""Click CLI for the TOTP ticker."""

from __future__ import annotations

import logging
import sys
import time

import click
from dotenv import load_dotenv
from pydantic import ValidationError

from .config import TickerConfig
from .engine import generate
from .loop import RefreshLoop
from .registry import (
    NoProvidersError,
    ProviderRegistry,
    SourceOpenError,
    UnknownProviderError,
    load_registry,
)

load_dotenv()

EXIT_NO_PROVIDERS = 3
EXIT_INTERRUPTED = 130

USAGE_EPILOG = (
    "If -f is not specified, secrets are read from standard input. "
    "Input is TAB separated with two fields: the display name of the "
    "service and its base32 secret key."
)


class NoProvidersExit(click.ClickException):
    """Fatal configuration error: no usable providers."""

    exit_code = EXIT_NO_PROVIDERS


def _build_config(**values: object) -> TickerConfig:
    try:
        return TickerConfig(**values)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise click.UsageError(f"Configuration error: {errors}")


def _load(path: str | None, normalize: bool) -> ProviderRegistry:
    try:
        return load_registry(path, normalize=normalize)
    except SourceOpenError as e:
        raise click.ClickException(str(e))
    except NoProvidersError as e:
        raise NoProvidersExit(f"parse: {e}")


secrets_file_option = click.option(
    "-f",
    "--file",
    "secrets_file",
    default=None,
    envvar="TOTP_SECRETS_FILE",
    help="Path to a secrets file; standard input when omitted",
)
digits_option = click.option(
    "-d",
    "--digits",
    type=int,
    default=6,
    show_default=True,
    envvar="TOTP_DIGITS",
    help="Amount of digits",
)
interval_option = click.option(
    "-i",
    "--interval",
    type=int,
    default=30,
    show_default=True,
    envvar="TOTP_INTERVAL",
    help="Time step in seconds",
)
normalize_option = click.option(
    "--normalize-secrets",
    is_flag=True,
    envvar="TOTP_NORMALIZE_SECRETS",
    help="Accept lower-case, spaced or unpadded base32 secrets",
)


@click.group(epilog=USAGE_EPILOG)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="TOTP_LOG_LEVEL",
    help="Diagnostic verbosity (written to stderr)",
)
def cli(log_level: str) -> None:
    """Time-based one-time password ticker."""
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command("watch", epilog=USAGE_EPILOG)
@secrets_file_option
@digits_option
@interval_option
@click.option(
    "-D",
    "--date-format",
    default="%H:%M:%S",
    show_default=True,
    envvar="TOTP_DATE_FORMAT",
    help="strftime format of the time shown above each block",
)
@click.option(
    "-w",
    "--width",
    type=int,
    default=25,
    show_default=True,
    envvar="TOTP_NAME_WIDTH",
    help="Display width of provider names",
)
@click.option("--once", is_flag=True, help="Print a single block and exit")
@normalize_option
def watch_cmd(
    secrets_file: str | None,
    digits: int,
    interval: int,
    date_format: str,
    width: int,
    once: bool,
    normalize_secrets: bool,
) -> None:
    """Print the codes of every provider, refreshed once per interval."""
    config = _build_config(
        digits=digits,
        interval_seconds=interval,
        date_format=date_format,
        name_width=width,
        once=once,
        normalize_secrets=normalize_secrets,
    )
    registry = _load(secrets_file, config.normalize_secrets)
    try:
        RefreshLoop(registry, config).run()
    except KeyboardInterrupt:
        sys.exit(EXIT_INTERRUPTED)


@cli.command("code")
@click.argument("name")
@secrets_file_option
@digits_option
@interval_option
@normalize_option
def code_cmd(
    name: str,
    secrets_file: str | None,
    digits: int,
    interval: int,
    normalize_secrets: bool,
) -> None:
    """Print only the current code of provider NAME."""
    config = _build_config(
        digits=digits,
        interval_seconds=interval,
        normalize_secrets=normalize_secrets,
    )
    registry = _load(secrets_file, config.normalize_secrets)
    try:
        entry = registry.get(name)
    except UnknownProviderError:
        raise click.ClickException(f"unknown provider: {name}")
    click.echo(generate(entry.secret, time.time(), config.interval_seconds, config.digits))


if __name__ == "__main__":
    cli()
