"""Tests for the DXF, preview and instructions outputs."""

import json
from datetime import datetime, timezone
from pathlib import Path

import ezdxf
import numpy as np
import pytest

from stringart.dxf import DxfSink, frame_circle, frame_polygon, save_dxf, write_art
from stringart.engine import GenerationStats, SelectedLine, StopReason
from stringart.instructions import (
    build_document,
    format_instructions,
    load_document,
    replay_steps,
    save_document,
)
from stringart.pins import layout_pins
from stringart.preview import encode_png, render_preview, render_svg, save_preview
from stringart.projection import ProjectedLine, StringArt, project

WHEN = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)

# ---------------------------------------------------------------------------
# Fixtures & helpers
# ---------------------------------------------------------------------------


def _stats(num_lines: int = 3, reason: StopReason = StopReason.COMPLETED) -> GenerationStats:
    return GenerationStats(
        num_pins=8, num_lines=num_lines, requested_lines=3, elapsed=0.25, stop_reason=reason
    )


@pytest.fixture()
def art() -> StringArt:
    pins = layout_pins(8, 100, 100, "circle", 5)
    lines = [SelectedLine(0, 2, 1), SelectedLine(2, 5, 2), SelectedLine(5, 1, 3)]
    return project(pins, lines, 100, 100, 200, 200, "circle")


def _single_line(y: float, count: int = 1, shape: str = "border") -> StringArt:
    line = ProjectedLine(0, 1, 1, 20.0, y, 180.0, y)
    return StringArt(width=200, height=200, shape=shape, lines=[line] * count)


class RecordingSink:
    def __init__(self):
        self.calls = []

    def add_line(self, x1, y1, x2, y2, layer):
        self.calls.append(("line", layer))

    def add_circle(self, cx, cy, r, layer):
        self.calls.append(("circle", layer, r))

    def add_polyline(self, points, closed, layer):
        self.calls.append(("polyline", layer, len(points), closed))


# ---------------------------------------------------------------------------
# DXF
# ---------------------------------------------------------------------------


class TestFrameGeometry:
    def test_circle(self):
        assert frame_circle(200, 150) == ((100, 75), 75)

    def test_square_centred(self):
        assert frame_polygon("square", 300, 200) == [(50, 0), (250, 0), (250, 200), (50, 200)]

    def test_border_full_rectangle(self):
        assert frame_polygon("border", 297, 210) == [(0, 0), (297, 0), (297, 210), (0, 210)]


class TestWriteArt:
    def test_primitives_per_layer(self, art):
        sink = RecordingSink()
        write_art(art, sink)
        assert sink.calls[0] == ("circle", "FRAME", 100)
        assert sink.calls.count(("circle", "PINS", 0.5)) == 8
        assert sink.calls.count(("line", "STRINGS")) == 3

    def test_rectangular_frame_is_closed_polyline(self):
        sink = RecordingSink()
        write_art(StringArt(297, 210, "border"), sink)
        assert sink.calls == [("polyline", "FRAME", 4, True)]

    def test_square_frame_is_centred(self):
        sink = DxfSink()
        write_art(StringArt(300, 200, "square"), sink)
        frame = sink.msp.query('LINE[layer=="FRAME"]')
        assert len(frame) == 4
        starts = sorted((e.dxf.start[0], e.dxf.start[1]) for e in frame)
        assert starts == [(50, 0), (50, 200), (250, 0), (250, 200)]

    def test_dxf_sink_closes_polylines(self):
        sink = DxfSink()
        sink.add_polyline([(0, 0), (10, 0), (10, 10)], closed=True, layer="FRAME")
        assert len(sink.msp.query('LINE[layer=="FRAME"]')) == 3

    def test_degenerate_polyline_ignored(self):
        sink = DxfSink()
        sink.add_polyline([(0, 0)], closed=True, layer="FRAME")
        assert len(sink.msp) == 0


class TestSaveDxf:
    def test_file_readable_with_layers(self, art, tmp_path: Path):
        path = save_dxf(art, tmp_path / "nested" / "art.dxf")
        assert path.exists()
        doc = ezdxf.readfile(path)
        for layer in ("FRAME", "PINS", "STRINGS"):
            assert layer in doc.layers
        msp = doc.modelspace()
        assert len(msp.query('LINE[layer=="STRINGS"]')) == 3
        assert len(msp.query('CIRCLE[layer=="PINS"]')) == 8
        assert len(msp.query('CIRCLE[layer=="FRAME"]')) == 1

    def test_string_endpoints_in_output_units(self, art, tmp_path: Path):
        doc = ezdxf.readfile(save_dxf(art, tmp_path / "art.dxf"))
        first = doc.modelspace().query('LINE[layer=="STRINGS"]')[0]
        assert first.dxf.start[0] == pytest.approx(art.lines[0].x1)
        assert first.dxf.start[1] == pytest.approx(art.lines[0].y1)
        assert first.dxf.end[0] == pytest.approx(art.lines[0].x2)
        assert first.dxf.end[1] == pytest.approx(art.lines[0].y2)


# ---------------------------------------------------------------------------
# Previews
# ---------------------------------------------------------------------------


class TestRenderPreview:
    def test_canvas_includes_padding(self, art):
        img = render_preview(art, px_per_mm=2)
        assert img.shape == (440, 440)
        assert img.dtype == np.uint8

    def test_line_darkens_its_row(self):
        img = render_preview(_single_line(100), px_per_mm=1, line_opacity=0.5)
        # y=100mm lands on row 200 + 10 - 100 = 110
        assert img[110, 100] == 127
        assert img[50, 100] == 255

    def test_overlapping_lines_compound(self):
        img = render_preview(_single_line(100, count=2), px_per_mm=1, line_opacity=0.5)
        assert img[110, 100] == 63

    def test_pins_drawn(self, art):
        img = render_preview(art, px_per_mm=4)
        pin = art.pins[0]
        col = round((pin.x + 10) * 4)
        row = round((art.height + 10 - pin.y) * 4)
        assert img[row, col] == 51

    @pytest.mark.parametrize("kwargs", [dict(px_per_mm=0), dict(line_opacity=0)])
    def test_invalid_arguments(self, art, kwargs):
        with pytest.raises(ValueError):
            render_preview(art, **kwargs)

    def test_png_encoding(self, art):
        data = encode_png(render_preview(art, px_per_mm=1))
        assert data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_save_preview(self, art, tmp_path: Path):
        path = save_preview(render_preview(art, px_per_mm=1), tmp_path / "out" / "p.png")
        assert path.stat().st_size > 0


class TestRenderSvg:
    def test_one_line_element_per_string(self, art):
        svg = render_svg(art)
        assert svg.startswith("<svg")
        assert svg.rstrip().endswith("</svg>")
        assert svg.count("<line ") == 3
        assert svg.count('r="0.8"') == 8

    @pytest.mark.parametrize("shape", ["square", "border"])
    def test_rectangular_frames(self, shape):
        svg = render_svg(StringArt(200, 150, shape))
        assert 'stroke="#ccc"' in svg


# ---------------------------------------------------------------------------
# Instructions document
# ---------------------------------------------------------------------------


class TestBuildDocument:
    def test_structure(self, art):
        doc = build_document(art, _stats(), WHEN)
        assert set(doc) == {"metadata", "pins", "path", "fullPath"}
        assert doc["metadata"]["generatedAt"] == WHEN.isoformat()
        assert doc["metadata"]["shape"] == "circle"
        assert doc["metadata"]["stats"]["numLines"] == 3
        assert doc["metadata"]["stats"]["stopReason"] == "completed"

    def test_path_and_steps(self, art):
        doc = build_document(art, _stats(), WHEN)
        assert doc["path"] == [0, 2, 5, 1]
        assert doc["fullPath"] == [
            {"step": 1, "from": 0, "to": 2},
            {"step": 2, "from": 2, "to": 5},
            {"step": 3, "from": 5, "to": 1},
        ]

    def test_pin_coordinates_rounded(self, art):
        doc = build_document(art, _stats(), WHEN)
        assert len(doc["pins"]) == 8
        for entry, pin in zip(doc["pins"], art.pins):
            assert entry["index"] == pin.index
            assert entry["x"] == round(pin.x, 2)

    def test_json_serialisable(self, art):
        json.dumps(build_document(art, _stats(), WHEN))


class TestLoadDocument:
    def test_save_then_load(self, art, tmp_path: Path):
        doc = build_document(art, _stats(), WHEN)
        path = save_document(doc, tmp_path / "a" / "doc.json")
        assert load_document(path) == doc

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_document(tmp_path / "none.json")

    @pytest.mark.parametrize(
        "content",
        [
            "{oops",
            "[]",
            json.dumps({"metadata": {}, "pins": []}),
            json.dumps(
                {"metadata": {}, "pins": [{}], "path": [], "fullPath": [{"step": 1}]}
            ),
            json.dumps(
                {
                    "metadata": {},
                    "pins": [{}, {}],
                    "path": [0, 5],
                    "fullPath": [{"step": 1, "from": 0, "to": 5}],
                }
            ),
        ],
    )
    def test_malformed(self, tmp_path: Path, content):
        path = tmp_path / "bad.json"
        path.write_text(content)
        with pytest.raises(ValueError):
            load_document(path)


class TestReplaySteps:
    def test_all_steps(self, art):
        doc = build_document(art, _stats(), WHEN)
        assert list(replay_steps(doc)) == [(1, 0, 2), (2, 2, 5), (3, 5, 1)]

    def test_window(self, art):
        doc = build_document(art, _stats(), WHEN)
        assert list(replay_steps(doc, start=2, count=1)) == [(2, 2, 5)]

    def test_start_past_end(self, art):
        doc = build_document(art, _stats(), WHEN)
        assert list(replay_steps(doc, start=10)) == []


class TestFormatInstructions:
    def test_sections(self, art):
        text = format_instructions(art, _stats(), WHEN)
        assert text.startswith("STRING ART INSTRUCTIONS\n")
        assert "Generated: 2024-05-01 12:30" in text
        assert "Size: 200mm x 200mm" in text
        assert "Pin 0: (100.0, 190.0)" in text
        assert "Start at pin 0 and follow the steps:" in text
        assert "  3. pin 5 → pin 1" in text
        assert "stopped early" not in text

    def test_truncated_run_is_flagged(self, art):
        text = format_instructions(art, _stats(reason=StopReason.TIMEOUT), WHEN)
        assert "Note: run stopped early (timeout)" in text

    def test_empty_pattern(self):
        text = format_instructions(StringArt(100, 100, "circle"), _stats(0), WHEN)
        assert "Start at pin 0" in text
