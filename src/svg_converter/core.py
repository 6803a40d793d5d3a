from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator

from .config import AppConfig
from .detection import collect_svg_files, is_svg_file
from .document import parse_document, read_svg_size
from .errors import ConversionError, InvalidInput, IoError
from .logging import StageTimings
from .models import (
    BatchSummary,
    ConversionRequest,
    EventCallback,
    FolderSizeInfo,
    ItemEvent,
    ItemOutcome,
    OutputPlan,
    ProgressEvent,
    SvgSize,
)
from .render import ENGINE, render_png
from .scanner import INVALID_FOLDER, count_svg_files, scan_folder_sizes
from .sizing import compute_output_size, enforce_pixel_cap, resolve_background
from .transform import transform_for_request
from .utils import atomic_write_bytes, make_output_path

logger = logging.getLogger(__name__)

INVALID_SVG_PATH = "Invalid SVG file path."

_CLOSED = object()


class StageChannel:
    """Stage names sent from a worker thread to the event loop.

    The producer calls :meth:`close` when it is done; iteration ends once
    every stage sent before the close has been delivered.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._queue: asyncio.Queue[object] = asyncio.Queue()

    def send(self, stage: str) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, stage)

    def close(self) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, _CLOSED)

    def __aiter__(self) -> AsyncIterator[str]:
        return self._drain()

    async def _drain(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield str(item)


@dataclass(frozen=True, slots=True)
class BatchPlan:
    request: ConversionRequest
    inputs: tuple[Path, ...]
    root: Path | None
    out_dir: Path | None


def _noop(_event: object) -> None:
    return None


class ConversionService:
    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config or AppConfig()

    @property
    def config(self) -> AppConfig:
        return self._config

    def get_size(self, path: Path) -> SvgSize:
        if not is_svg_file(path):
            raise InvalidInput(INVALID_SVG_PATH)
        return read_svg_size(path)

    def count_files(self, dir_path: Path) -> int:
        return count_svg_files(dir_path)

    def scan_folder_sizes(self, dir_path: Path) -> FolderSizeInfo:
        return scan_folder_sizes(dir_path, max_unique=self._config.runtime.max_unique_sizes)

    def prepare(self, request: ConversionRequest) -> BatchPlan:
        """Validate batch preconditions and resolve the ordered input list."""

        input_path = Path(request.input_path)
        if request.is_folder and not input_path.is_dir():
            raise InvalidInput(INVALID_FOLDER)

        # Raises InvalidInput before any item is touched.
        resolve_background(request)

        if request.is_folder:
            inputs = collect_svg_files(input_path)
            root: Path | None = input_path
        else:
            inputs = self._explicit_inputs(request, input_path)
            root = None

        return BatchPlan(
            request=request,
            inputs=tuple(inputs),
            root=root,
            out_dir=self._output_dir(request),
        )

    def _explicit_inputs(self, request: ConversionRequest, input_path: Path) -> list[Path]:
        candidates = [Path(p) for p in request.input_paths] if request.input_paths else [input_path]
        for candidate in candidates:
            if not is_svg_file(candidate):
                raise InvalidInput(INVALID_SVG_PATH)
        return candidates

    def _output_dir(self, request: ConversionRequest) -> Path | None:
        if request.output_dir:
            return Path(request.output_dir)
        return self._config.runtime.output_dir

    async def convert(self, request: ConversionRequest, emit: EventCallback | None = None) -> BatchSummary:
        return await self.run(self.prepare(request), emit)

    def convert_sync(self, request: ConversionRequest, emit: EventCallback | None = None) -> BatchSummary:
        return self.run_sync(self.prepare(request), emit)

    def run_sync(self, plan: BatchPlan, emit: EventCallback | None = None) -> BatchSummary:
        return asyncio.run(self.run(plan, emit))

    async def run(self, plan: BatchPlan, emit: EventCallback | None = None) -> BatchSummary:
        callback = emit or _noop
        summary = BatchSummary(total=len(plan.inputs))
        logger.info("Converting %d SVG file(s)", summary.total)

        callback(
            ProgressEvent(
                phase="start",
                current=0,
                total=summary.total,
                ok=summary.ok,
                failed=summary.failed,
            )
        )

        for position, svg_path in enumerate(plan.inputs, start=1):
            outcome = await self._run_item(plan, svg_path, position, summary, callback)
            summary.record(outcome)
            callback(self._item_event(position, summary.total, svg_path, outcome))
            callback(
                ProgressEvent(
                    phase="done",
                    current=position,
                    total=summary.total,
                    ok=summary.ok,
                    failed=summary.failed,
                    last_svg=str(svg_path),
                )
            )

        logger.info(
            "Finished: %d converted, %d failed of %d", summary.ok, summary.failed, summary.total
        )
        return summary

    async def _run_item(
        self,
        plan: BatchPlan,
        svg_path: Path,
        index: int,
        summary: BatchSummary,
        callback: EventCallback,
    ) -> ItemOutcome:
        channel = StageChannel(asyncio.get_running_loop())
        ok_before, failed_before = summary.ok, summary.failed

        async def relay() -> None:
            async for stage in channel:
                callback(
                    ProgressEvent(
                        phase=stage,  # type: ignore[arg-type]
                        current=index,
                        active=index,
                        total=summary.total,
                        ok=ok_before,
                        failed=failed_before,
                        last_svg=str(svg_path),
                    )
                )

        relay_task = asyncio.create_task(relay())
        try:
            result, timings = await asyncio.to_thread(self._convert_one, plan, svg_path, channel)
        except ConversionError as exc:
            logger.warning("Failed to convert %s: %s - %s", svg_path, exc.code, exc)
            return ItemOutcome.failure(str(exc))
        except Exception as exc:
            logger.exception("Unexpected error converting %s", svg_path)
            return ItemOutcome.failure(str(exc) or type(exc).__name__)
        finally:
            await relay_task

        logger.debug(
            "Converted %s -> %s (%dx%d) in %.1f ms timings=%s",
            svg_path,
            result.output_path,
            result.width,
            result.height,
            timings.total_ms,
            timings.to_dict(),
        )
        return ItemOutcome.success(result)

    def _convert_one(
        self, plan: BatchPlan, svg_path: Path, channel: StageChannel
    ) -> tuple[OutputPlan, StageTimings]:
        try:
            return self._convert_stages(plan, svg_path, channel)
        finally:
            channel.close()

    def _convert_stages(
        self, plan: BatchPlan, svg_path: Path, channel: StageChannel
    ) -> tuple[OutputPlan, StageTimings]:
        request = plan.request
        runtime = self._config.runtime
        timings = StageTimings()

        channel.send("read")
        started = time.perf_counter()
        try:
            data = svg_path.read_bytes()
        except OSError as exc:
            raise IoError(f"Failed to read {svg_path}: {exc.strerror or exc}") from exc
        timings.read_ms = (time.perf_counter() - started) * 1000

        channel.send("parse")
        started = time.perf_counter()
        document = parse_document(data, source=svg_path.name)
        target = compute_output_size(request, document.intrinsic_size, default_scale=runtime.default_scale)
        enforce_pixel_cap(target.width, target.height, runtime.max_pixels)
        timings.parse_ms = (time.perf_counter() - started) * 1000

        channel.send("render")
        started = time.perf_counter()
        # Checked once in prepare(); re-checked here for every item.
        background = resolve_background(request)
        transform = transform_for_request(
            request, document.natural_width, document.natural_height, target
        )
        payload = render_png(document, target, transform, background)
        timings.render_ms = (time.perf_counter() - started) * 1000

        channel.send("write")
        started = time.perf_counter()
        output_path = make_output_path(svg_path, plan.root, plan.out_dir, target.width, target.height)
        atomic_write_bytes(output_path, payload)
        timings.write_ms = (time.perf_counter() - started) * 1000

        return OutputPlan(output_path=output_path, width=target.width, height=target.height), timings

    def _item_event(self, index: int, total: int, svg_path: Path, outcome: ItemOutcome) -> ItemEvent:
        if outcome.plan is not None:
            return ItemEvent(
                index=index,
                total=total,
                svg=str(svg_path),
                ok=True,
                png=str(outcome.plan.output_path),
                out_width=outcome.plan.width,
                out_height=outcome.plan.height,
                engine=ENGINE,
            )
        return ItemEvent(
            index=index,
            total=total,
            svg=str(svg_path),
            ok=False,
            engine=ENGINE,
            error=outcome.error,
        )


__all__ = [
    "BatchPlan",
    "ConversionError",
    "ConversionService",
    "StageChannel",
]
