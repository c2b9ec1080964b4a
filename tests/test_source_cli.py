"""
Tests for the OpenCV frame source, the command line, configuration and sinks.
Run with:  pytest tests/test_source_cli.py
"""

from __future__ import annotations

import logging
from types import SimpleNamespace

import cv2
import numpy as np
import pytest

from hrv_monitor.cli import build_config, parse_args, run
from hrv_monitor.config import MonitorConfig
from hrv_monitor.hrv import HrvMetrics
from hrv_monitor.pipeline import HeartRatePipeline
from hrv_monitor.sink import LoggingSink
import hrv_monitor.source as source_module
from hrv_monitor.source import VideoFrameSource, to_frame


def _make_bgr(r: int, g: int, b: int, h: int = 48, w: int = 64) -> np.ndarray:
    frame = np.zeros((h, w, 3), dtype=np.uint8)
    frame[:, :, 2] = r
    frame[:, :, 1] = g
    frame[:, :, 0] = b
    return frame


class _FakeCapture:
    """Stands in for ``cv2.VideoCapture``, reporting the given positions (ms)."""

    def __init__(self, positions) -> None:
        self._positions = list(positions)
        self._ms = 0.0

    def read(self):
        if not self._positions:
            return False, None
        self._ms = self._positions.pop(0)
        return True, _make_bgr(r=90, g=40, b=30)

    def get(self, prop):
        return self._ms

    def release(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Source tests
# ---------------------------------------------------------------------------

class TestToFrame:

    def test_downsamples_and_converts_to_rgb(self):
        frame = to_frame(_make_bgr(r=200, g=50, b=10), 1234)
        assert frame.pixels.shape == (30, 30, 3)
        assert frame.pixels.dtype == np.uint8
        assert frame.pixels[0, 0].tolist() == [200, 50, 10]
        assert frame.timestamp == 1234

    def test_custom_size(self):
        frame = to_frame(_make_bgr(10, 20, 30), 0, size=(16, 12))
        assert frame.pixels.shape == (12, 16, 3)

    def test_drops_alpha_channel(self):
        bgra = np.zeros((40, 40, 4), dtype=np.uint8)
        bgra[:, :, 2] = 90
        frame = to_frame(bgra, 0)
        assert frame.pixels.shape == (30, 30, 3)
        assert frame.pixels[5, 5, 0] == 90


class TestVideoFrameSource:

    def test_read_before_open_raises(self):
        src = VideoFrameSource("missing.mp4")
        with pytest.raises(RuntimeError):
            src.read_frame()

    def test_open_missing_file_raises(self, tmp_path):
        src = VideoFrameSource(str(tmp_path / "missing.mp4"))
        with pytest.raises(RuntimeError):
            src.open()

    def test_close_is_idempotent(self):
        src = VideoFrameSource("missing.mp4")
        src.close()
        src.close()

    def test_video_file_settles_and_ends(self, tmp_path):
        path = str(tmp_path / "clip.avi")
        writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*"MJPG"), 30.0, (64, 48))
        if not writer.isOpened():
            pytest.skip("MJPG writer unavailable")
        for i in range(120):
            writer.write(_make_bgr(r=90 + i % 10, g=40, b=30))
        writer.release()

        with VideoFrameSource(path, settle_ms=1500) as src:
            frames = list(src.frames())

        stamps = [f.timestamp for f in frames]
        assert frames
        assert len(frames) < 120
        assert stamps[0] >= 1500
        assert all(b > a for a, b in zip(stamps, stamps[1:]))
        assert all(f.pixels.shape == (30, 30, 3) for f in frames)

        with HeartRatePipeline() as pipeline:
            results = [pipeline.process_frame(f) for f in frames]
        assert all(r.contact for r in results)

    def test_repeated_file_positions_bumped(self):
        src = VideoFrameSource("clip.avi", settle_ms=0)
        src._cap = _FakeCapture([0.0, 33.3, 33.3, 66.7])
        stamps = [f.timestamp for f in src.frames()]
        assert stamps == [0, 33, 34, 67]

    def test_repeated_camera_clock_bumped(self, monkeypatch):
        monkeypatch.setattr(source_module, "time", SimpleNamespace(monotonic=lambda: 5.0))
        src = VideoFrameSource(0, settle_ms=0)
        src._cap = _FakeCapture([0.0, 0.0, 0.0])
        stamps = [f.timestamp for f in src.frames()]
        assert stamps == [5000, 5001, 5002]

    def test_settle_period_dropped(self):
        src = VideoFrameSource("clip.avi", settle_ms=100)
        src._cap = _FakeCapture([0.0, 50.0, 99.0, 100.0, 150.0])
        stamps = [f.timestamp for f in src.frames()]
        assert stamps == [100, 150]


# ---------------------------------------------------------------------------
# CLI tests
# ---------------------------------------------------------------------------

class TestCli:

    def test_defaults_build_default_config(self):
        args = parse_args([])
        assert args.source == 0
        assert args.settle_ms == 1500
        assert build_config(args) == MonitorConfig()

    def test_options_map_to_config(self):
        args = parse_args([
            "--source", "clip.mp4",
            "--sample-size", "40x20",
            "--window", "600",
            "--rr-range", "300:1500",
            "--batch", "64",
            "--batch-mode", "sliding",
            "--tolerance", "100",
        ])
        config = build_config(args)
        assert args.source == "clip.mp4"
        assert config.sample_size == (40, 20)
        assert config.window_capacity == 600
        assert (config.rr_min_ms, config.rr_max_ms) == (300, 1500)
        assert config.batch_size == 64
        assert config.batch_mode == "sliding"
        assert config.outlier_tolerance_ms == 100.0

    def test_bad_size_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--sample-size", "big"])

    def test_bad_range_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--rr-range", "250-2000"])

    def test_run_with_invalid_config_fails(self):
        assert run(parse_args(["--rr-range", "2000:250"])) == 1

    def test_run_with_missing_source_fails(self, tmp_path):
        args = parse_args(["--source", str(tmp_path / "missing.mp4")])
        assert run(args) == 1


# ---------------------------------------------------------------------------
# Config tests
# ---------------------------------------------------------------------------

class TestMonitorConfig:

    def test_defaults(self):
        config = MonitorConfig()
        assert config.sample_size == (30, 30)
        assert config.window_capacity == 300
        assert config.variance_threshold == 300.0
        assert config.bright_pixel_threshold == 20
        assert (config.rr_min_ms, config.rr_max_ms) == (250, 2000)
        assert config.baseline_size == 20
        assert config.batch_size == 50
        assert config.outlier_tolerance_ms == 150.0
        assert config.batch_mode == "oneshot"

    @pytest.mark.parametrize("kwargs", [
        {"sample_width": 0},
        {"window_capacity": 1},
        {"rr_min_ms": 2000, "rr_max_ms": 250},
        {"baseline_size": 0},
        {"batch_size": 1},
        {"outlier_tolerance_ms": 0},
        {"hf_band": (0.4, 0.15)},
        {"batch_mode": "rolling"},
        {"bright_level": 300},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            MonitorConfig(**kwargs)


# ---------------------------------------------------------------------------
# Sink tests
# ---------------------------------------------------------------------------

class TestLoggingSink:

    def test_logs_changes_only(self, caplog):
        sink = LoggingSink(logging.getLogger("test.sink"))
        with caplog.at_level(logging.INFO, logger="test.sink"):
            sink.on_bpm_change(75)
            sink.on_bpm_change(75)
            sink.on_bpm_status_change("3/50")
            sink.on_bpm_status_change("3/50")
        messages = [r.getMessage() for r in caplog.records]
        assert messages == ["BPM=75", "Status: 3/50"]

    def test_logs_metrics_as_json(self, caplog):
        sink = LoggingSink(logging.getLogger("test.sink"))
        metrics = HrvMetrics(20.0, 800.0, 1.0, 2.0, 50.0, 0.5, 62.5, 4.0)
        with caplog.at_level(logging.INFO, logger="test.sink"):
            sink.on_hrv_metrics_ready(metrics)
        assert '"rmssd": 20.0' in caplog.text
        assert '"pnn50": 4.0' in caplog.text
