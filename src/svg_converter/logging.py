from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "svg_converter"


@dataclass(slots=True)
class StageTimings:
    read_ms: float = 0.0
    parse_ms: float = 0.0
    render_ms: float = 0.0
    write_ms: float = 0.0

    @property
    def total_ms(self) -> float:
        return self.read_ms + self.parse_ms + self.render_ms + self.write_ms

    def to_dict(self) -> dict[str, float]:
        return {key: round(value, 2) for key, value in asdict(self).items()}


def configure_logging(level: str = "INFO", *, console: Console | None = None) -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
