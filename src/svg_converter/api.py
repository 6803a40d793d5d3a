from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import AsyncIterator

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import AppConfig, load_config
from .core import BatchPlan, ConversionService
from .errors import ConversionError
from .models import ConversionRequest, ConvertEvent
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

API_TITLE = "Local SVG Converter"
API_VERSION = "0.1.0"


class ConvertBody(BaseModel):
    """JSON body of ``POST /convert``; accepts camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    input_mode: str = "file"
    input_path: str = ""
    input_paths: list[str] | None = None
    output_dir: str | None = None
    size_mode: str = "scale"
    scale: float | None = None
    width: int | None = Field(default=None, ge=0)
    height: int | None = Field(default=None, ge=0)
    crop: bool | None = None
    background: str | None = None

    def to_request(self) -> ConversionRequest:
        return ConversionRequest(
            input_mode="folder" if self.input_mode == "folder" else "file",
            input_path=self.input_path,
            input_paths=tuple(self.input_paths or ()),
            output_dir=self.output_dir,
            size_mode=self.size_mode,
            scale=self.scale,
            width=self.width,
            height=self.height,
            crop=self.crop,
            background=self.background,
        )


router = APIRouter(tags=["conversion"])


def get_service(request: Request) -> ConversionService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="SERVICE_UNAVAILABLE")
    return service


def _bad_request(exc: ConversionError) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": exc.code, "message": str(exc)})


@router.get("/health", summary="Health check")
def health() -> dict[str, str]:
    return {"status": "ok", "version": API_VERSION}


@router.get("/size", summary="Intrinsic size of one SVG file")
async def get_size(
    path: str = Query(...),
    service: ConversionService = Depends(get_service),
) -> dict[str, int]:
    try:
        result = await asyncio.to_thread(service.get_size, Path(path))
    except ConversionError as exc:
        raise _bad_request(exc) from exc
    return result.to_payload()


@router.get("/count", summary="Count SVG files below a folder")
async def count_files(
    path: str = Query(...),
    service: ConversionService = Depends(get_service),
) -> dict[str, int]:
    try:
        total = await asyncio.to_thread(service.count_files, Path(path))
    except ConversionError as exc:
        raise _bad_request(exc) from exc
    return {"total": total}


@router.get("/scan", summary="Classify SVG sizes below a folder")
async def scan_folder(
    path: str = Query(...),
    service: ConversionService = Depends(get_service),
) -> dict[str, object]:
    try:
        info = await asyncio.to_thread(service.scan_folder_sizes, Path(path))
    except ConversionError as exc:
        raise _bad_request(exc) from exc
    return info.to_payload()


def _log_stream_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        logger.info("Conversion stream closed before the batch finished")
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Conversion stream failed", exc_info=exc)


async def _stream_events(service: ConversionService, plan: BatchPlan) -> AsyncIterator[str]:
    queue: asyncio.Queue[dict[str, object] | None] = asyncio.Queue()

    def emit(event: ConvertEvent) -> None:
        queue.put_nowait(event.to_payload())

    async def run() -> None:
        try:
            summary = await service.run(plan, emit)
            queue.put_nowait({"event": "convert-summary", **summary.to_payload()})
        finally:
            queue.put_nowait(None)

    task = asyncio.create_task(run())
    task.add_done_callback(_log_stream_failure)
    try:
        while True:
            payload = await queue.get()
            if payload is None:
                break
            yield json.dumps(payload) + "\n"
        await task
    finally:
        # The client went away before the batch finished.
        if not task.done():
            task.cancel()


@router.post("/convert", summary="Convert SVG files, streaming NDJSON progress")
async def convert(
    body: ConvertBody,
    service: ConversionService = Depends(get_service),
) -> StreamingResponse:
    try:
        plan = await asyncio.to_thread(service.prepare, body.to_request())
    except ConversionError as exc:
        raise _bad_request(exc) from exc
    return StreamingResponse(_stream_events(service, plan), media_type="application/x-ndjson")


def _prepare_config(settings: Settings, config_path: Path | None) -> AppConfig:
    config = load_config(config_path or settings.config_path)
    if settings.enable_local_api is not None:
        config.runtime.enable_local_api = settings.enable_local_api
    return config


def create_app(config_path: Path | None = None, *, require_enabled: bool = True) -> FastAPI:
    config = _prepare_config(get_settings(), config_path)
    if require_enabled and not config.runtime.enable_local_api:
        raise RuntimeError("Local API is disabled. Enable it via config.runtime.enable_local_api")
    app = FastAPI(title=API_TITLE, version=API_VERSION)
    app.state.config = config
    app.state.service = ConversionService(config)
    app.include_router(router)
    return app


__all__ = ["ConvertBody", "create_app", "router"]
