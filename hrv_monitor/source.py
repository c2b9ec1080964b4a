"""
Frame source backed by OpenCV.

Wraps ``cv2.VideoCapture`` (a camera index or a recorded video file) and
yields :class:`~hrv_monitor.frame.Frame` objects already downsampled to the
pipeline's sampling size and converted to RGB.

Live cameras are stamped with a monotonic millisecond clock; video files
use the container's position so recordings replay at their true timing.
The first ``settle_ms`` of frames are discarded while exposure and white
balance settle.
"""

from __future__ import annotations

import logging
import time
from typing import Generator, Optional, Tuple, Union

import cv2
import numpy as np

from hrv_monitor.frame import Frame

logger = logging.getLogger(__name__)


def to_frame(bgr: np.ndarray, timestamp: int, size: Tuple[int, int] = (30, 30)) -> Frame:
    """
    Downsample an OpenCV BGR image to *size* ``(width, height)`` and wrap it.
    """
    if bgr.ndim == 3 and bgr.shape[2] == 4:
        bgr = bgr[:, :, :3]
    small = cv2.resize(bgr, size, interpolation=cv2.INTER_AREA)
    return Frame(cv2.cvtColor(small, cv2.COLOR_BGR2RGB), int(timestamp))


class VideoFrameSource:
    """
    Parameters
    ----------
    source:
        OpenCV camera index or path to a video file.
    sample_size:
        ``(width, height)`` of the produced frames.
    flip_horizontal:
        Mirror the image left-to-right before sampling.
    settle_ms:
        Initial period (ms) whose frames are dropped.
    """

    def __init__(
        self,
        source: Union[int, str] = 0,
        sample_size: Tuple[int, int] = (30, 30),
        flip_horizontal: bool = False,
        settle_ms: int = 1500,
    ) -> None:
        self.source = source
        self.sample_size = sample_size
        self.flip_horizontal = flip_horizontal
        self.settle_ms = settle_ms

        self._cap: Optional[cv2.VideoCapture] = None
        self._is_file = isinstance(source, str)
        self._first_ts: Optional[int] = None
        self._last_ts: Optional[int] = None
        self._settling = False
        self._exhausted = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Open the capture device or file."""
        cap = cv2.VideoCapture(self.source)
        if not cap.isOpened():
            raise RuntimeError(f"Cannot open video source {self.source!r}")
        self._cap = cap
        self._first_ts = None
        self._last_ts = None
        self._settling = False
        self._exhausted = False
        logger.info(
            "Source opened – %s=%s sample_size=%s",
            "file" if self._is_file else "camera",
            self.source,
            self.sample_size,
        )

    def close(self) -> None:
        """Release the capture."""
        if self._cap is None:
            return
        self._cap.release()
        self._cap = None
        logger.info("Source closed.")

    def __enter__(self) -> "VideoFrameSource":
        self.open()
        return self

    def __exit__(self, *_) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Frame acquisition
    # ------------------------------------------------------------------

    def read_frame(self) -> Optional[Frame]:
        """
        Capture a single frame.

        Returns *None* when the capture fails, the file is exhausted or the
        frame falls inside the settle period.
        """
        if self._cap is None:
            raise RuntimeError("Source is not open.  Call open() first.")

        ok, bgr = self._cap.read()
        if not ok:
            self._settling = False
            if self._is_file:
                self._exhausted = True
            else:
                logger.warning("VideoCapture.read() returned False.")
            return None
        if self.flip_horizontal:
            bgr = cv2.flip(bgr, 1)

        ts = self._timestamp()
        if self._first_ts is None:
            self._first_ts = ts
        self._settling = ts - self._first_ts < self.settle_ms
        if self._settling:
            return None
        return to_frame(bgr, ts, self.sample_size)

    def frames(self) -> Generator[Frame, None, None]:
        """
        Yield frames until the source is exhausted, closed or keeps failing.

        Usage::

            with VideoFrameSource("clip.mp4") as src:
                for frame in src.frames():
                    pipeline.process_frame(frame)
        """
        _null_streak = 0
        while self._cap is not None and not self._exhausted:
            frame = self.read_frame()
            if frame is None:
                if self._settling or self._exhausted:
                    continue
                _null_streak += 1
                if _null_streak >= 10:
                    logger.error("Source returned 10 consecutive empty frames – aborting.")
                    break
                continue
            _null_streak = 0
            yield frame

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _timestamp(self) -> int:
        if self._is_file:
            ts = int(round(self._cap.get(cv2.CAP_PROP_POS_MSEC)))
        else:
            ts = int(time.monotonic() * 1000)
        # Buffered frames drained at startup can share a millisecond.
        if self._last_ts is not None and ts <= self._last_ts:
            ts = self._last_ts + 1
        self._last_ts = ts
        return ts
