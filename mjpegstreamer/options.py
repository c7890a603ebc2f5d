"""Command line options of the streamer."""

import enum
import os
import re
import string
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Optional

__all__ = [
    "OptionsError",
    "ControlMode",
    "Control",
    "SinkOptions",
    "Options",
    "parse_resolution",
    "parse_options",
    "VIDEO_MIN_WIDTH",
    "VIDEO_MAX_WIDTH",
    "VIDEO_MIN_HEIGHT",
    "VIDEO_MAX_HEIGHT",
    "VIDEO_MAX_FPS",
    "FORMATS",
    "STANDARDS",
    "IO_METHODS",
    "ENCODER_TYPES",
    "CONTROL_NAMES",
    "LOG_LEVEL_INFO",
    "LOG_LEVEL_PERF",
    "LOG_LEVEL_VERBOSE",
    "LOG_LEVEL_DEBUG",
]

VIDEO_MIN_WIDTH = 160
VIDEO_MAX_WIDTH = 10240
VIDEO_MIN_HEIGHT = 120
VIDEO_MAX_HEIGHT = 4320
VIDEO_MAX_FPS = 120

FORMATS = ("YUYV", "UYVY", "RGB565", "RGB24", "MJPEG", "JPEG")
STANDARDS = ("PAL", "NTSC", "SECAM")
IO_METHODS = ("MMAP", "USERPTR")
ENCODER_TYPES = ("CPU", "HW", "M2M-VIDEO", "M2M-IMAGE", "NOOP")

LOG_LEVEL_INFO = 0
LOG_LEVEL_PERF = 1
LOG_LEVEL_VERBOSE = 2
LOG_LEVEL_DEBUG = 3

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_LLONG_MIN = -(2**63)
_LLONG_MAX = 2**63 - 1
_UINT_MOD = 2**32

_WHITESPACE = " \t\n\v\f\r"
_DIGITS = string.digits + string.ascii_lowercase


class OptionsError(ValueError):
    """The command line holds an invalid option or value."""


class _BadResolution(OptionsError):
    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class ControlMode(enum.Enum):
    """How an image control of the device is to be set."""

    NONE = "none"
    DEFAULT = "default"
    AUTO = "auto"
    VALUE = "value"


@dataclass
class Control:
    """One image control: leave alone, reset, automatic or a fixed value."""

    mode: ControlMode = ControlMode.NONE
    value: int = 0


# Name of each image control and whether it accepts "auto"
_CONTROLS = (
    ("brightness", True),
    ("contrast", False),
    ("saturation", False),
    ("hue", True),
    ("gamma", False),
    ("sharpness", False),
    ("backlight_compensation", False),
    ("white_balance", True),
    ("gain", True),
    ("color_effect", False),
    ("rotate", False),
    ("flip_vertical", False),
    ("flip_horizontal", False),
)

CONTROL_NAMES = tuple(name for name, _ in _CONTROLS)


@dataclass
class SinkOptions:
    """Settings of a shared memory sink."""

    name: Optional[str] = None
    mode: int = 0o660
    rm: bool = False
    client_ttl: int = 10
    timeout: int = 1

    @property
    def enabled(self) -> bool:
        """A sink is used only when it has a non-empty name."""
        return bool(self.name)


def _default_workers() -> int:
    return min(os.cpu_count() or 1, 4)


@dataclass
class Options:
    """Everything that can be set from the command line."""

    # Capturing
    device: str = "/dev/video0"
    input: int = 0
    width: int = 640
    height: int = 480
    format: str = "YUYV"
    standard: Optional[str] = None
    io_method: str = "MMAP"
    desired_fps: int = 0
    min_frame_size: int = 128
    persistent: bool = False
    dv_timings: bool = False
    n_bufs: int = field(default_factory=lambda: _default_workers() + 1)
    n_workers: int = field(default_factory=_default_workers)
    jpeg_quality: int = 80
    encoder: str = "CPU"
    blank: Optional[str] = None
    last_as_blank: int = -1
    slowdown: bool = False
    device_timeout: int = 1
    device_error_delay: int = 1
    m2m_device: Optional[str] = None

    # Image controls
    controls: dict[str, Control] = field(
        default_factory=lambda: {name: Control() for name in CONTROL_NAMES}
    )

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 8080
    unix_path: Optional[str] = None
    unix_rm: bool = False
    unix_mode: int = 0
    systemd: bool = False
    user: Optional[str] = None
    passwd: str = ""
    static_path: Optional[str] = None
    drop_same_frames: int = 0
    fake_width: int = 0
    fake_height: int = 0
    allow_origin: Optional[str] = None
    tcp_nodelay: bool = False
    server_timeout: int = 10

    # Sinks
    sink: SinkOptions = field(default_factory=SinkOptions)
    raw_sink: SinkOptions = field(default_factory=SinkOptions)
    h264_sink: SinkOptions = field(default_factory=SinkOptions)
    h264_bitrate: int = 5000
    h264_gop: int = 30
    h264_m2m_device: Optional[str] = None

    # Process
    exit_on_no_clients: int = 0
    notify_parent: bool = False

    # Logging
    log_level: int = LOG_LEVEL_INFO
    log_colored: Optional[bool] = None

    # "help", "version" or "features" when one of them was asked for
    action: Optional[str] = None


def _strtoll(text: str, base: int) -> Optional[int]:
    """Read a whole C-style integer; None when it is not one."""
    if text == "":
        return 0
    body = text.lstrip(_WHITESPACE)
    negative = body[:1] == "-"
    if body[:1] in ("+", "-"):
        body = body[1:]
    if base == 0:
        if body[:2].lower() == "0x" and body[2:3] and body[2] in string.hexdigits:
            base, body = 16, body[2:]
        elif body.startswith("0"):
            base = 8
        else:
            base = 10
    allowed = _DIGITS[:base]
    if not body or any(len(ch.lower()) != 1 or ch.lower() not in allowed for ch in body):
        return None
    value = int(body, base)
    if negative:
        value = -value
    if not _LLONG_MIN <= value <= _LLONG_MAX:
        return None
    return value


def _parse_number(name: str, text: str, low: int, high: int, base: int = 0) -> int:
    value = _strtoll(text, base)
    if value is None or not low <= value <= high:
        raise OptionsError(f"Invalid value for '{name}={text}': min={low}, max={high}")
    return value


_RESOLUTION_RE = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)x[ \t\n\v\f\r]*([+-]?\d+)", re.ASCII)


def parse_resolution(text: str, limited: bool) -> tuple[int, int]:
    """Read ``WxH``; with ``limited`` both sides must be within video limits."""
    match = _RESOLUTION_RE.match(text)
    if match is None:
        raise _BadResolution("format", f"Invalid resolution format: {text}")
    width, height = (int(group) % _UINT_MOD for group in match.groups())
    if limited:
        if not VIDEO_MIN_WIDTH <= width <= VIDEO_MAX_WIDTH:
            raise _BadResolution(
                "width", f"Invalid width: min={VIDEO_MIN_WIDTH}, max={VIDEO_MAX_WIDTH}"
            )
        if not VIDEO_MIN_HEIGHT <= height <= VIDEO_MAX_HEIGHT:
            raise _BadResolution(
                "height", f"Invalid height: min={VIDEO_MIN_HEIGHT}, max={VIDEO_MAX_HEIGHT}"
            )
    return width, height


_Handler = Callable[[Options, Optional[str]], None]


def _assign(options: Options, path: str, value: object) -> None:
    *parents, last = path.split(".")
    target: object = options
    for parent in parents:
        target = getattr(target, parent)
    setattr(target, last, value)


def _flag(path: str, value: object = True) -> _Handler:
    def handle(options: Options, _arg: Optional[str]) -> None:
        _assign(options, path, value)
    return handle


def _text(path: str) -> _Handler:
    def handle(options: Options, arg: Optional[str]) -> None:
        _assign(options, path, arg)
    return handle


def _number(path: str, name: str, low: int, high: int, base: int = 0) -> _Handler:
    def handle(options: Options, arg: Optional[str]) -> None:
        _assign(options, path, _parse_number(name, arg or "", low, high, base))
    return handle


def _choice(path: str, label: str, choices: Sequence[str]) -> _Handler:
    def handle(options: Options, arg: Optional[str]) -> None:
        text = arg or ""
        value = text.upper()
        if value not in choices:
            raise OptionsError(f"Unknown {label}: {text}; available: {', '.join(choices)}")
        _assign(options, path, value)
    return handle


def _resolution(width_path: str, height_path: str, name: str, limited: bool) -> _Handler:
    def handle(options: Options, arg: Optional[str]) -> None:
        text = arg or ""
        try:
            width, height = parse_resolution(text, limited)
        except _BadResolution as exc:
            if exc.kind == "width":
                message = (
                    f"Invalid width of '{name}={text}': "
                    f"min={VIDEO_MIN_WIDTH}, max={VIDEO_MAX_WIDTH}"
                )
            elif exc.kind == "height":
                message = (
                    f"Invalid height of '{name}={text}': "
                    f"min={VIDEO_MIN_HEIGHT}, max={VIDEO_MAX_HEIGHT}"
                )
            else:
                message = f"Invalid resolution format for '{name}={text}'"
            raise OptionsError(message) from exc
        _assign(options, width_path, width)
        _assign(options, height_path, height)
    return handle


def _control(name: str, allow_auto: bool) -> _Handler:
    def handle(options: Options, arg: Optional[str]) -> None:
        text = arg or ""
        ctl = options.controls[name]
        keyword = text.lower()
        if keyword == "default":
            ctl.mode = ControlMode.DEFAULT
        elif allow_auto and keyword == "auto":
            ctl.mode = ControlMode.AUTO
        else:
            ctl.mode = ControlMode.VALUE
            ctl.value = _parse_number(f"--{name}", text, _INT_MIN, _INT_MAX)
    return handle


def _image_default(options: Options, _arg: Optional[str]) -> None:
    for ctl in options.controls.values():
        ctl.mode = ControlMode.DEFAULT


@dataclass(frozen=True)
class _Spec:
    name: str
    short: Optional[str]
    takes_arg: bool
    # None for a deprecated option that is accepted and has no effect
    handler: Optional[_Handler]


def _sink_specs(prefix: str, path: str) -> list[_Spec]:
    return [
        _Spec(f"{prefix}sink", None, True, _text(f"{path}.name")),
        _Spec(f"{prefix}sink-mode", None, True,
              _number(f"{path}.mode", f"--{prefix}sink-mode", _INT_MIN, _INT_MAX, 8)),
        _Spec(f"{prefix}sink-rm", None, False, _flag(f"{path}.rm")),
        _Spec(f"{prefix}sink-client-ttl", None, True,
              _number(f"{path}.client_ttl", f"--{prefix}sink-client-ttl", 1, 60)),
        _Spec(f"{prefix}sink-timeout", None, True,
              _number(f"{path}.timeout", f"--{prefix}sink-timeout", 1, 60)),
    ]


_SPECS: list[_Spec] = [
    _Spec("device", "d", True, _text("device")),
    _Spec("input", "i", True, _number("input", "--input", 0, 128)),
    _Spec("resolution", "r", True, _resolution("width", "height", "--resolution", True)),
    _Spec("format", "m", True, _choice("format", "pixel format", FORMATS)),
    _Spec("tv-standard", "a", True, _choice("standard", "TV standard", STANDARDS)),
    _Spec("io-method", "I", True, _choice("io_method", "IO method", IO_METHODS)),
    _Spec("desired-fps", "f", True, _number("desired_fps", "--desired-fps", 0, VIDEO_MAX_FPS)),
    _Spec("min-frame-size", "z", True, _number("min_frame_size", "--min-frame-size", 1, 8192)),
    _Spec("persistent", "n", False, _flag("persistent")),
    _Spec("dv-timings", "t", False, _flag("dv_timings")),
    _Spec("buffers", "b", True, _number("n_bufs", "--buffers", 1, 32)),
    _Spec("workers", "w", True, _number("n_workers", "--workers", 1, 32)),
    _Spec("quality", "q", True, _number("jpeg_quality", "--quality", 1, 100)),
    _Spec("encoder", "c", True, _choice("encoder", "encoder type", ENCODER_TYPES)),
    _Spec("glitched-resolutions", "g", True, None),
    _Spec("blank", "k", True, _text("blank")),
    _Spec("last-as-blank", "K", True, _number("last_as_blank", "--last-as-blank", 0, 86400)),
    _Spec("slowdown", "l", False, _flag("slowdown")),
    _Spec("device-timeout", None, True, _number("device_timeout", "--device-timeout", 1, 60)),
    _Spec("device-error-delay", None, True,
          _number("device_error_delay", "--device-error-delay", 1, 60)),
    _Spec("m2m-device", None, True, _text("m2m_device")),

    _Spec("image-default", None, False, _image_default),
    *(
        _Spec(name.replace("_", "-"), None, True, _control(name, allow_auto))
        for name, allow_auto in _CONTROLS
    ),

    _Spec("host", "s", True, _text("host")),
    _Spec("port", "p", True, _number("port", "--port", 1, 65535)),
    _Spec("unix", "U", True, _text("unix_path")),
    _Spec("unix-rm", "D", False, _flag("unix_rm")),
    _Spec("unix-mode", "M", True, _number("unix_mode", "--unix-mode", _INT_MIN, _INT_MAX, 8)),
    _Spec("systemd", "S", False, _flag("systemd")),
    _Spec("user", None, True, _text("user")),
    _Spec("passwd", None, True, _text("passwd")),
    _Spec("static", None, True, _text("static_path")),
    _Spec("drop-same-frames", "e", True,
          _number("drop_same_frames", "--drop-same-frames", 0, VIDEO_MAX_FPS)),
    _Spec("allow-origin", None, True, _text("allow_origin")),
    _Spec("fake-resolution", "R", True,
          _resolution("fake_width", "fake_height", "--fake-resolution", False)),
    _Spec("tcp-nodelay", None, False, _flag("tcp_nodelay")),
    _Spec("server-timeout", None, True, _number("server_timeout", "--server-timeout", 1, 60)),

    *_sink_specs("", "sink"),
    *_sink_specs("raw-", "raw_sink"),
    *_sink_specs("h264-", "h264_sink"),
    _Spec("h264-bitrate", None, True, _number("h264_bitrate", "--h264-bitrate", 25, 20000)),
    _Spec("h264-gop", None, True, _number("h264_gop", "--h264-gop", 0, 60)),
    _Spec("h264-m2m-device", None, True, _text("h264_m2m_device")),

    _Spec("exit-on-no-clients", None, True,
          _number("exit_on_no_clients", "--exit-on-no-clients", 0, 86400)),
    _Spec("notify-parent", None, False, _flag("notify_parent")),

    _Spec("log-level", None, True,
          _number("log_level", "--log-level", LOG_LEVEL_INFO, LOG_LEVEL_DEBUG)),
    _Spec("perf", None, False, _flag("log_level", LOG_LEVEL_PERF)),
    _Spec("verbose", None, False, _flag("log_level", LOG_LEVEL_VERBOSE)),
    _Spec("debug", None, False, _flag("log_level", LOG_LEVEL_DEBUG)),
    _Spec("force-log-colors", None, False, _flag("log_colored", True)),
    _Spec("no-log-colors", None, False, _flag("log_colored", False)),

    _Spec("help", "h", False, _flag("action", "help")),
    _Spec("version", "v", False, _flag("action", "version")),
    _Spec("features", None, False, _flag("action", "features")),
]

_LONG = {spec.name: spec for spec in _SPECS}
_SHORT = {spec.short: spec for spec in _SPECS if spec.short is not None}


def _match_long(name: str) -> _Spec:
    spec = _LONG.get(name)
    if spec is not None:
        return spec
    candidates = [spec for long_name, spec in _LONG.items() if long_name.startswith(name)]
    if not candidates:
        raise OptionsError(f"unrecognized option '--{name}'")
    if len(candidates) > 1:
        raise OptionsError(f"option '--{name}' is ambiguous")
    return candidates[0]


def _iter_options(args: Sequence[str]) -> Iterator[tuple[_Spec, Optional[str]]]:
    """Yield options with their values in command line order."""
    it = iter(args)
    for arg in it:
        if arg == "--":
            return
        if arg.startswith("--"):
            name, has_value, value = arg[2:].partition("=")
            spec = _match_long(name)
            if spec.takes_arg:
                if not has_value:
                    following = next(it, None)
                    if following is None:
                        raise OptionsError(f"option '--{spec.name}' requires an argument")
                    value = following
                yield spec, value
            else:
                if has_value:
                    raise OptionsError(f"option '--{spec.name}' doesn't allow an argument")
                yield spec, None
        elif arg.startswith("-") and arg != "-":
            rest = arg[1:]
            while rest:
                char, rest = rest[0], rest[1:]
                spec = _SHORT.get(char)
                if spec is None:
                    raise OptionsError(f"invalid option -- '{char}'")
                if not spec.takes_arg:
                    yield spec, None
                    continue
                if not rest:
                    following = next(it, None)
                    if following is None:
                        raise OptionsError(f"option requires an argument -- '{char}'")
                    rest = following
                yield spec, rest
                break
        # Anything else is a positional argument and is ignored.


def parse_options(argv: Sequence[str]) -> Options:
    """Parse the arguments (without the program name) into Options.

    Options are applied in order; help, version and features stop parsing
    and are reported through ``Options.action``.
    """
    options = Options()
    for spec, value in _iter_options(argv):
        if spec.handler is not None:
            spec.handler(options, value)
        if options.action is not None:
            break
    return options