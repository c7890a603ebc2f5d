"""Exposure of captured frames to HTTP clients and memory sinks."""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field, fields
from typing import Optional, Protocol

__all__ = ["Frame", "Video", "Stream"]

_log = logging.getLogger(__name__)


@dataclass
class Frame:
    """An image with its geometry and state."""

    data: bytes = b""
    width: int = 0
    height: int = 0
    format: int = 0
    stride: int = 0
    online: bool = False
    key: bool = False
    grab_ts: float = 0.0
    encode_begin_ts: float = 0.0
    encode_end_ts: float = 0.0

    @property
    def used(self) -> int:
        """Number of bytes of image data."""
        return len(self.data)

    def copy_from(self, other: "Frame") -> None:
        """Make this frame an exact copy of ``other``."""
        for item in fields(self):
            setattr(self, item.name, getattr(other, item.name))


class FrameSink(Protocol):
    """Where frames are published for other processes."""

    has_clients: bool

    def check(self, frame: Frame) -> bool: ...

    def put(self, frame: Frame) -> None: ...


class H264Stream(Protocol):
    """Encodes frames to H264 and publishes them to its sink."""

    sink: FrameSink

    def process(self, frame: Frame, force_key: bool) -> None: ...


@dataclass
class Video:
    """The frame currently shown to HTTP clients."""

    frame: Frame = field(default_factory=Frame)
    captured_fps: int = 0
    updated: bool = False
    has_clients: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass
class Stream:
    """Decides what every consumer sees as frames come and go.

    ``last_as_blank`` below zero shows the blank frame as soon as the source
    goes offline, zero keeps the last live frame forever, and a positive value
    keeps it for that many seconds.
    """

    blank: Optional[Frame] = None
    last_as_blank: int = -1
    slowdown: bool = False
    error_delay: int = 1
    sink: Optional[FrameSink] = None
    raw_sink: Optional[FrameSink] = None
    h264_sink: Optional[FrameSink] = None
    h264_bitrate: int = 5000
    h264_gop: int = 30
    h264_m2m_path: Optional[str] = None
    h264: Optional[H264Stream] = None
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)
    video: Video = field(default_factory=Video)
    last_as_blank_ts: float = 0.0
    _stop: threading.Event = field(default_factory=threading.Event, repr=False, compare=False)

    @property
    def stopped(self) -> bool:
        """True once the loop has been asked to stop."""
        return self._stop.is_set()

    def loop_break(self) -> None:
        """Ask the capture loop to stop."""
        self._stop.set()

    def has_clients(self) -> bool:
        """Tell whether anyone is watching the stream or its sinks."""
        if self.video.has_clients:
            return True
        if self.sink is not None and self.sink.has_clients:
            return True
        return self.h264 is not None and self.h264.sink.has_clients

    @staticmethod
    def _sink_put(sink: Optional[FrameSink], frame: Optional[Frame]) -> None:
        if sink is not None and frame is not None and sink.check(frame):
            sink.put(frame)

    def _choose_offline_frame(self) -> Optional[Frame]:
        current = self.video.frame
        new: Optional[Frame] = None
        if current.used == 0:
            new = self.blank
            self.last_as_blank_ts = 0.0
        elif current.online:
            if self.last_as_blank < 0:
                new = self.blank
                _log.info("Changed video frame to BLANK")
            elif self.last_as_blank > 0:
                self.last_as_blank_ts = self.clock() + self.last_as_blank
                _log.info("Freezed last ALIVE video frame for %d seconds", self.last_as_blank)
            else:
                _log.info("Freezed last ALIVE video frame forever")
        elif self.last_as_blank < 0:
            new = self.blank

        if (
            self.last_as_blank > 0
            and self.last_as_blank_ts != 0
            and self.last_as_blank_ts < self.clock()
        ):
            new = self.blank
            self.last_as_blank_ts = 0.0
            _log.info("Changed last ALIVE video frame to BLANK")
        return new

    def expose_frame(self, frame: Optional[Frame], captured_fps: int) -> None:
        """Show ``frame`` to clients, or react to the source being offline (None)."""
        video = self.video
        with video.lock:
            if frame is not None:
                new: Optional[Frame] = frame
                self.last_as_blank_ts = 0.0
                _log.debug("Exposed ALIVE video frame")
            else:
                new = self._choose_offline_frame()

            if new is not None:
                video.frame.copy_from(new)
            video.frame.online = frame is not None
            video.captured_fps = captured_fps
            video.updated = True

        self._sink_put(self.sink, frame if frame is not None else self.blank)

        if frame is None:
            self._sink_put(self.raw_sink, self.blank)
            if self.h264 is not None and self.blank is not None:
                self.h264.process(self.blank, False)