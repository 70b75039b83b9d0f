# multibias/diagnostics.py
from __future__ import annotations

import logging
import textwrap
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# A sink receives each informational message as one string.
Sink = Callable[[str], None]


def emit(message: str, sink: Optional[Sink] = None) -> None:
    """
    Route a diagnostic message: always logged at INFO on the package logger,
    and handed to `sink` when one is given.
    """
    text = " ".join(textwrap.dedent(message).split())
    logger.info(text)
    if sink is not None:
        sink(text)


def collect() -> tuple[list[str], Sink]:
    """Return a list and a sink that appends to it (handy for CLI output)."""
    messages: list[str] = []
    return messages, messages.append
