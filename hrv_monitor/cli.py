"""
HRV monitor – command line.

Usage
-----
    hrv-monitor [OPTIONS]

Options
-------
    --source SRC         Camera index or video file (default: 0)
    --sample-size WxH    Sampling image size (default: 30x30)
    --window INT         Sample window capacity (default: 300)
    --rr-range MIN:MAX   Plausible RR interval range in ms (default: 250:2000)
    --batch-mode MODE    oneshot | sliding (default: oneshot)
    --settle-ms INT      Frames dropped while the camera settles (default: 1500)
    --flip               Mirror the image horizontally

Place a fingertip over the lens (torch on) and keep it still; BPM appears
after a few beats and HRV metrics after each completed batch.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Tuple, Union

from hrv_monitor.config import BATCH_MODES, MonitorConfig
from hrv_monitor.errors import InputError
from hrv_monitor.pipeline import HeartRatePipeline
from hrv_monitor.sink import LoggingSink
from hrv_monitor.source import VideoFrameSource

logger = logging.getLogger("hrv_monitor")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _parse_size(text: str) -> Tuple[int, int]:
    try:
        w, h = (int(v) for v in text.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid size {text!r}.  Use WxH, e.g. 30x30.")
    return w, h


def _parse_range(text: str) -> Tuple[int, int]:
    try:
        low, high = (int(v) for v in text.split(":"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid range {text!r}.  Use MIN:MAX, e.g. 250:2000.")
    return low, high


def _parse_source(text: str) -> Union[int, str]:
    return int(text) if text.isdigit() else text


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    defaults = MonitorConfig()
    parser = argparse.ArgumentParser(
        description="Heart rate and HRV from fingertip PPG",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--source", type=_parse_source, default=0,
                        help="Camera index or path to a video file")
    parser.add_argument("--sample-size", type=_parse_size,
                        default=defaults.sample_size,
                        help="Sampling image size, e.g. 30x30")
    parser.add_argument("--window", type=int, default=defaults.window_capacity,
                        help="Sample window capacity (samples)")
    parser.add_argument("--variance-threshold", type=float,
                        default=defaults.variance_threshold,
                        help="Maximum grayscale variance of a covered lens")
    parser.add_argument("--bright-pixels", type=int,
                        default=defaults.bright_pixel_threshold,
                        help="Maximum number of near-white pixels of a covered lens")
    parser.add_argument("--rr-range", type=_parse_range,
                        default=(defaults.rr_min_ms, defaults.rr_max_ms),
                        help="Plausible RR interval range in ms, MIN:MAX")
    parser.add_argument("--baseline", type=int, default=defaults.baseline_size,
                        help="RR intervals averaged into the baseline")
    parser.add_argument("--batch", type=int, default=defaults.batch_size,
                        help="Validated RR intervals per HRV batch")
    parser.add_argument("--tolerance", type=float,
                        default=defaults.outlier_tolerance_ms,
                        help="Outlier tolerance around the baseline in ms")
    parser.add_argument("--batch-mode", choices=BATCH_MODES,
                        default=defaults.batch_mode,
                        help="Clear the batch after each report or slide it")
    parser.add_argument("--settle-ms", type=int, default=1500,
                        help="Initial camera settle period in ms")
    parser.add_argument("--flip", action="store_true",
                        help="Mirror the image horizontally")
    parser.add_argument("--log-level", default="INFO",
                        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
                        help="Logging verbosity")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> MonitorConfig:
    width, height = args.sample_size
    rr_min, rr_max = args.rr_range
    return MonitorConfig(
        sample_width=width,
        sample_height=height,
        window_capacity=args.window,
        variance_threshold=args.variance_threshold,
        bright_pixel_threshold=args.bright_pixels,
        rr_min_ms=rr_min,
        rr_max_ms=rr_max,
        baseline_size=args.baseline,
        batch_size=args.batch,
        outlier_tolerance_ms=args.tolerance,
        batch_mode=args.batch_mode,
    )


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

def run(args: argparse.Namespace) -> int:
    try:
        config = build_config(args)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    source = VideoFrameSource(
        source=args.source,
        sample_size=config.sample_size,
        flip_horizontal=args.flip,
        settle_ms=args.settle_ms,
    )
    pipeline = HeartRatePipeline(config, sink=LoggingSink(logger))

    logger.info("Starting HRV monitor.  Press Ctrl+C to quit.")
    try:
        with source, pipeline:
            for frame in source.frames():
                try:
                    pipeline.process_frame(frame)
                except InputError as exc:
                    logger.warning("Frame rejected: %s", exc)
    except RuntimeError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
        datefmt="%H:%M:%S",
    )
    return run(args)
