"""Domain models for SVG to PNG conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal, Union

InputMode = Literal["file", "folder"]
Phase = Literal["start", "read", "parse", "render", "write", "done"]

STAGES: tuple[str, ...] = ("read", "parse", "render", "write")


@dataclass(frozen=True, slots=True)
class SvgSize:
    """Integer pixel dimensions, used for both intrinsic and target sizes."""

    width: int
    height: int

    def to_payload(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class ConversionRequest:
    """A host request describing what to convert and how to size it."""

    input_mode: InputMode = "file"
    input_path: str = ""
    input_paths: tuple[str, ...] = ()
    output_dir: str | None = None
    size_mode: str = "scale"
    scale: float | None = None
    width: int | None = None
    height: int | None = None
    crop: bool | None = None
    background: str | None = None

    @property
    def is_folder(self) -> bool:
        return self.input_mode == "folder"

    @property
    def wants_cover(self) -> bool:
        return self.size_mode == "exact" and bool(self.crop)

    @property
    def background_value(self) -> str | None:
        if self.background is None:
            return None
        value = self.background.strip()
        return value or None


@dataclass(frozen=True, slots=True)
class OutputPlan:
    output_path: Path
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class ItemOutcome:
    """Result of one batch item: either a plan or an error message."""

    plan: OutputPlan | None = None
    error: str | None = None

    @classmethod
    def success(cls, plan: OutputPlan) -> "ItemOutcome":
        return cls(plan=plan)

    @classmethod
    def failure(cls, message: str) -> "ItemOutcome":
        return cls(error=message)

    @property
    def ok(self) -> bool:
        return self.plan is not None


@dataclass(slots=True)
class BatchSummary:
    total: int = 0
    ok: int = 0
    failed: int = 0

    def record(self, outcome: ItemOutcome) -> None:
        if outcome.ok:
            self.ok += 1
        else:
            self.failed += 1

    def to_payload(self) -> dict[str, int]:
        return {"total": self.total, "ok": self.ok, "failed": self.failed}


@dataclass(frozen=True, slots=True)
class FolderSizeInfo:
    total: int
    all_same: bool
    base_size: SvgSize | None
    unique_sizes: list[SvgSize] = field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        return {
            "total": self.total,
            "allSame": self.all_same,
            "baseSize": self.base_size.to_payload() if self.base_size else None,
            "uniqueSizes": [size.to_payload() for size in self.unique_sizes],
        }


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    phase: Phase
    current: int
    total: int
    ok: int
    failed: int
    active: int | None = None
    last_svg: str | None = None

    event = "convert-progress"

    def to_payload(self) -> dict[str, object]:
        return {
            "event": self.event,
            "phase": self.phase,
            "current": self.current,
            "active": self.active,
            "total": self.total,
            "ok": self.ok,
            "failed": self.failed,
            "lastSvg": self.last_svg,
        }


@dataclass(frozen=True, slots=True)
class ItemEvent:
    index: int
    total: int
    svg: str
    ok: bool
    png: str = ""
    out_width: int | None = None
    out_height: int | None = None
    engine: str | None = None
    error: str | None = None

    event = "convert-item"

    def to_payload(self) -> dict[str, object]:
        return {
            "event": self.event,
            "index": self.index,
            "total": self.total,
            "svg": self.svg,
            "png": self.png,
            "outWidth": self.out_width,
            "outHeight": self.out_height,
            "ok": self.ok,
            "engine": self.engine,
            "error": self.error,
        }


ConvertEvent = Union[ProgressEvent, ItemEvent]
EventCallback = Callable[[ConvertEvent], None]


__all__ = [
    "STAGES",
    "BatchSummary",
    "ConversionRequest",
    "ConvertEvent",
    "EventCallback",
    "FolderSizeInfo",
    "ItemEvent",
    "ItemOutcome",
    "OutputPlan",
    "ProgressEvent",
    "SvgSize",
]
