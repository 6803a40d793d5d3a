from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from svg_converter.config import AppConfig, RuntimeConfig
from svg_converter.core import ConversionService
from svg_converter.errors import InvalidInput
from svg_converter.models import ConversionRequest, ConvertEvent, ItemEvent, ProgressEvent, SvgSize

STRIPES = (
    '<rect x="0" y="0" width="100" height="100" fill="#ff0000"/>'
    '<rect x="100" y="0" width="100" height="100" fill="#00ff00"/>'
    '<rect x="200" y="0" width="100" height="100" fill="#0000ff"/>'
)


def build_service(**runtime: object) -> ConversionService:
    return ConversionService(AppConfig(runtime=RuntimeConfig(**runtime)))


def collect(events: list[ConvertEvent]):
    return events.append


def pixel(path: Path, x: int, y: int) -> tuple[int, int, int, int]:
    with Image.open(path) as image:
        return image.convert("RGBA").getpixel((x, y))


def test_single_file_scale_writes_png(tmp_path: Path, make_svg) -> None:
    source = make_svg(tmp_path / "icon.svg", 100, 100)
    events: list[ConvertEvent] = []
    request = ConversionRequest(input_path=str(source), size_mode="scale", scale=2.0)
    summary = build_service().convert_sync(request, collect(events))

    assert summary.to_payload() == {"total": 1, "ok": 1, "failed": 0}
    output = tmp_path / "icon_200x200.png"
    with Image.open(output) as image:
        assert image.size == (200, 200)

    phases = [event.phase for event in events if isinstance(event, ProgressEvent)]
    assert phases == ["start", "read", "parse", "render", "write", "done"]
    assert isinstance(events[-2], ItemEvent)
    item = events[-2]
    assert item.ok is True
    assert item.png == str(output)
    assert (item.out_width, item.out_height) == (200, 200)
    assert item.error is None


def test_stage_events_carry_active_index(tmp_path: Path, make_svg) -> None:
    source = make_svg(tmp_path / "icon.svg", 10, 10)
    events: list[ConvertEvent] = []
    build_service().convert_sync(ConversionRequest(input_path=str(source)), collect(events))
    stages = [e for e in events if isinstance(e, ProgressEvent) and e.phase not in ("start", "done")]
    assert {(e.current, e.active, e.last_svg) for e in stages} == {(1, 1, str(source))}
    start, done = events[0], events[-1]
    assert isinstance(start, ProgressEvent) and start.active is None and start.last_svg is None
    assert isinstance(done, ProgressEvent) and done.active is None and done.ok == 1


def test_background_fill_and_transparency(tmp_path: Path, make_svg) -> None:
    filled = make_svg(tmp_path / "filled.svg", 10, 10)
    clear = make_svg(tmp_path / "clear.svg", 10, 10)
    service = build_service()
    service.convert_sync(ConversionRequest(input_path=str(filled), background="#ff0000"))
    service.convert_sync(ConversionRequest(input_path=str(clear), background=""))
    assert pixel(tmp_path / "filled_10x10.png", 5, 5) == (255, 0, 0, 255)
    assert pixel(tmp_path / "clear_10x10.png", 5, 5)[3] == 0


def test_exact_cover_crop_keeps_center_strip(tmp_path: Path, make_svg) -> None:
    source = make_svg(tmp_path / "stripes.svg", 300, 100, STRIPES)
    request = ConversionRequest(
        input_path=str(source), size_mode="exact", width=100, height=100, crop=True
    )
    summary = build_service().convert_sync(request)
    assert summary.ok == 1
    output = tmp_path / "stripes_100x100.png"
    for x in (3, 50, 96):
        assert pixel(output, x, 50) == (0, 255, 0, 255)


def test_exact_stretch_squeezes_whole_image(tmp_path: Path, make_svg) -> None:
    source = make_svg(tmp_path / "stripes.svg", 300, 100, STRIPES)
    request = ConversionRequest(input_path=str(source), size_mode="exact", width=90, height=60)
    build_service().convert_sync(request)
    output = tmp_path / "stripes_90x60.png"
    assert pixel(output, 15, 30) == (255, 0, 0, 255)
    assert pixel(output, 45, 30) == (0, 255, 0, 255)
    assert pixel(output, 75, 30) == (0, 0, 255, 255)


def test_viewbox_document_fills_scaled_canvas(tmp_path: Path, make_svg) -> None:
    body = '<rect x="0" y="0" width="10" height="10" fill="#0000ff"/>'
    source = make_svg(tmp_path / "vb.svg", 40, 40, body, viewBox="0 0 10 10")
    build_service().convert_sync(ConversionRequest(input_path=str(source), scale=0.5))
    output = tmp_path / "vb_20x20.png"
    assert pixel(output, 1, 1) == (0, 0, 255, 255)
    assert pixel(output, 18, 18) == (0, 0, 255, 255)


def test_folder_batch_continues_after_failure(tmp_path: Path, make_svg) -> None:
    root = tmp_path / "art"
    make_svg(root / "a.svg", 10, 10)
    (root / "b.svg").write_text("<svg", encoding="utf-8")
    make_svg(root / "nested" / "deeper" / "c.svg", 20, 10)
    out_dir = tmp_path / "out"
    events: list[ConvertEvent] = []
    request = ConversionRequest(input_mode="folder", input_path=str(root), output_dir=str(out_dir))
    summary = build_service().convert_sync(request, collect(events))

    assert summary.to_payload() == {"total": 3, "ok": 2, "failed": 1}
    assert (out_dir / "a_10x10.png").exists()
    assert (out_dir / "nested_deeper_c_20x10.png").exists()

    items = [e for e in events if isinstance(e, ItemEvent)]
    assert [item.ok for item in items] == [True, False, True]
    failed = items[1]
    assert failed.png == ""
    assert failed.out_width is None and failed.out_height is None
    assert failed.error

    done = [e for e in events if isinstance(e, ProgressEvent) and e.phase == "done"]
    assert [e.ok + e.failed for e in done] == [1, 2, 3]
    assert all(e.current == e.ok + e.failed for e in done)


def test_pixel_cap_fails_item_not_batch(tmp_path: Path, make_svg) -> None:
    big = make_svg(tmp_path / "big.svg", 100, 100)
    small = make_svg(tmp_path / "small.svg", 1, 1)
    events: list[ConvertEvent] = []
    request = ConversionRequest(input_paths=(str(big), str(small)), scale=90.0)
    summary = build_service().convert_sync(request, collect(events))
    assert (summary.ok, summary.failed) == (1, 1)
    items = [e for e in events if isinstance(e, ItemEvent)]
    assert "8944×8944" in (items[0].error or "")
    assert items[1].out_width == 90


def test_configured_pixel_cap(tmp_path: Path, make_svg) -> None:
    source = make_svg(tmp_path / "icon.svg", 10, 10)
    summary = build_service(max_pixels=99).convert_sync(ConversionRequest(input_path=str(source)))
    assert summary.failed == 1


def test_flat_multi_file_to_output_dir_prefixes_parent(tmp_path: Path, make_svg) -> None:
    light = make_svg(tmp_path / "light" / "logo.svg", 8, 8)
    dark = make_svg(tmp_path / "dark" / "logo.svg", 8, 8)
    out_dir = tmp_path / "out"
    request = ConversionRequest(input_paths=(str(light), str(dark)), output_dir=str(out_dir))
    summary = build_service().convert_sync(request)
    assert summary.ok == 2
    assert sorted(p.name for p in out_dir.iterdir()) == ["dark_logo_8x8.png", "light_logo_8x8.png"]


def test_invalid_paths_fail_fast(tmp_path: Path, make_svg) -> None:
    good = make_svg(tmp_path / "good.svg")
    events: list[ConvertEvent] = []
    request = ConversionRequest(input_paths=(str(good), str(tmp_path / "missing.svg")))
    with pytest.raises(InvalidInput) as exc:
        build_service().convert_sync(request, collect(events))
    assert str(exc.value) == "Invalid SVG file path."
    assert events == []
    assert not (tmp_path / "good_50x50.png").exists()


def test_wrong_extension_fails_fast(tmp_path: Path) -> None:
    text = tmp_path / "notes.txt"
    text.write_text("<svg/>", encoding="utf-8")
    with pytest.raises(InvalidInput):
        build_service().convert_sync(ConversionRequest(input_path=str(text)))


def test_invalid_background_fails_fast(tmp_path: Path, make_svg) -> None:
    source = make_svg(tmp_path / "icon.svg")
    with pytest.raises(InvalidInput) as exc:
        build_service().convert_sync(ConversionRequest(input_path=str(source), background="#12"))
    assert "Invalid background color" in str(exc.value)


def test_folder_mode_requires_directory(tmp_path: Path) -> None:
    request = ConversionRequest(input_mode="folder", input_path=str(tmp_path / "nope"))
    with pytest.raises(InvalidInput) as exc:
        build_service().convert_sync(request)
    assert str(exc.value) == "Invalid folder path."


def test_empty_folder_batch(tmp_path: Path) -> None:
    events: list[ConvertEvent] = []
    request = ConversionRequest(input_mode="folder", input_path=str(tmp_path))
    summary = build_service().convert_sync(request, collect(events))
    assert summary.to_payload() == {"total": 0, "ok": 0, "failed": 0}
    assert len(events) == 1


def test_utility_operations(tmp_path: Path, make_svg) -> None:
    service = build_service()
    source = make_svg(tmp_path / "icon.svg", 12, 34)
    assert service.get_size(source) == SvgSize(12, 34)
    assert service.count_files(tmp_path) == 1
    assert service.scan_folder_sizes(tmp_path).all_same is True
    with pytest.raises(InvalidInput) as exc:
        service.get_size(tmp_path / "icon.png")
    assert str(exc.value) == "Invalid SVG file path."


def test_empty_svg_fails_item_not_batch(tmp_path: Path, make_svg) -> None:
    (tmp_path / "empty.svg").write_bytes(b"")
    make_svg(tmp_path / "valid.svg", 10, 10)
    events: list[ConvertEvent] = []
    request = ConversionRequest(input_mode="folder", input_path=str(tmp_path))
    summary = build_service().convert_sync(request, collect(events))
    assert summary.to_payload() == {"total": 2, "ok": 1, "failed": 1}
    items = [e for e in events if isinstance(e, ItemEvent)]
    assert [item.ok for item in items] == [False, True]


def test_unexpected_error_fails_item_not_batch(tmp_path: Path, make_svg, monkeypatch) -> None:
    from svg_converter import core

    broken = make_svg(tmp_path / "broken.svg", 10, 10)
    valid = make_svg(tmp_path / "valid.svg", 10, 10)
    real_parse = core.parse_document

    def flaky_parse(data: bytes, *, source: str = "<bytes>"):
        if source == broken.name:
            raise RecursionError("maximum recursion depth exceeded")
        return real_parse(data, source=source)

    monkeypatch.setattr(core, "parse_document", flaky_parse)
    events: list[ConvertEvent] = []
    request = ConversionRequest(input_paths=(str(broken), str(valid)))
    summary = build_service().convert_sync(request, collect(events))

    assert summary.to_payload() == {"total": 2, "ok": 1, "failed": 1}
    items = [e for e in events if isinstance(e, ItemEvent)]
    assert items[0].ok is False
    assert "recursion" in (items[0].error or "")
    assert items[1].ok is True
    assert (tmp_path / "valid_10x10.png").exists()


def test_side_longer_than_renderer_limit_fails_item(tmp_path: Path, make_svg) -> None:
    source = make_svg(tmp_path / "strip.svg", 10, 10)
    events: list[ConvertEvent] = []
    request = ConversionRequest(input_path=str(source), size_mode="exact", width=40_000, height=1)
    summary = build_service().convert_sync(request, collect(events))
    assert summary.failed == 1
    items = [e for e in events if isinstance(e, ItemEvent)]
    assert items[0].error == "Too large. Max side is 32767 px."
    assert not (tmp_path / "strip_40000x1.png").exists()
