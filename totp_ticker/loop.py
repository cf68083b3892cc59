"""Periodic refresh loop printing one block of codes per interval."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

import click

from .config import TickerConfig
from .engine import TOTPError, generate
from .registry import ProviderRegistry


logger = logging.getLogger(__name__)


class LoopState(Enum):
    """States of the refresh loop."""

    REPEATING = "repeating"
    COMPLETED = "completed"


def _local_now() -> datetime:
    return datetime.now().astimezone()


def format_interval(seconds: int) -> str:
    """Render a duration compactly, e.g. ``30s`` or ``1m30s``."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


def format_name(name: str, width: int) -> str:
    """Left-justify ``name`` to ``width`` characters, truncating longer names."""
    return name[:width].ljust(width)


class RefreshLoop:
    """Prints a refreshed code block for every provider once per interval.

    Every line of a block is computed from one clock snapshot, so a block
    never mixes codes from two different time steps.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        config: TickerConfig,
        clock: Callable[[], datetime] = _local_now,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
        echo: Callable[[str], None] = click.echo,
        generator: Callable[[bytes, datetime, int, int], str] = generate,
    ) -> None:
        self._registry = registry
        self._config = config
        self._clock = clock
        self._sleep = sleep
        self._monotonic = monotonic
        self._echo = echo
        self._generator = generator
        self.state: Optional[LoopState] = None

    def render_tick(self, now: datetime) -> list[str]:
        """Return the header and one line per provider for ``now``."""
        cfg = self._config
        lines = [f"{now.strftime(cfg.date_format)} - Next in {format_interval(cfg.interval_seconds)}"]
        for entry in self._registry:
            try:
                code = self._generator(entry.secret, now, cfg.interval_seconds, cfg.digits)
            except TOTPError as e:
                logger.warning(f"totp: {e} ({entry.name}), skipping")
                continue
            lines.append(f"{format_name(entry.name, cfg.name_width)} {code}")
        return lines

    def run(self) -> LoopState:
        """Print blocks until the loop completes.

        In single-shot mode the loop completes after the first block;
        otherwise it repeats until the process is interrupted.
        """
        interval = self._config.interval_seconds
        self.state = LoopState.REPEATING
        started = self._monotonic()
        ticks = 0
        while self.state is LoopState.REPEATING:
            for line in self.render_tick(self._clock()):
                self._echo(line)
            ticks += 1
            if self._config.once:
                self.state = LoopState.COMPLETED
                break
            now = self._monotonic()
            remaining = started + ticks * interval - now
            if remaining < 0:
                # missed deadlines are dropped, not replayed
                ticks = int((now - started) // interval) + 1
                remaining = started + ticks * interval - now
            self._sleep(remaining)
        return self.state
