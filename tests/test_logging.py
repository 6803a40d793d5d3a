import io

import pytest
from rich.console import Console
from rich.logging import RichHandler

from svg_converter.logging import StageTimings, configure_logging


def test_stage_timings_total_and_rounding() -> None:
    timings = StageTimings(read_ms=1.234, parse_ms=2.0, render_ms=10.5, write_ms=0.266)
    assert timings.total_ms == pytest.approx(14.0)
    assert timings.to_dict() == {"read_ms": 1.23, "parse_ms": 2.0, "render_ms": 10.5, "write_ms": 0.27}


def test_configure_logging_replaces_rich_handler() -> None:
    stream = io.StringIO()
    configure_logging("info")
    logger = configure_logging("DEBUG", console=Console(file=stream, width=200))
    handlers = [handler for handler in logger.handlers if isinstance(handler, RichHandler)]
    assert len(handlers) == 1
    logger.getChild("core").debug("Converted icon.svg in %.1f ms", 14.0)
    assert "Converted icon.svg in 14.0 ms" in stream.getvalue()
