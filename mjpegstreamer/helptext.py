"""Help and feature listings of the streamer command, and its entry point."""

import logging
import sys
from collections.abc import Sequence
from dataclasses import asdict
from typing import Optional

from mjpegstreamer.options import (
    ENCODER_TYPES,
    FORMATS,
    IO_METHODS,
    LOG_LEVEL_DEBUG,
    LOG_LEVEL_INFO,
    LOG_LEVEL_VERBOSE,
    STANDARDS,
    Options,
    OptionsError,
    parse_options,
)

__all__ = ["VERSION", "FEATURES", "render_help", "render_features", "main"]

VERSION = "0.1.0"

# Optional features of the program and whether this build has them
FEATURES = (
    ("WITH_GPIO", False),
    ("WITH_SYSTEMD", True),
    ("WITH_PTHREAD_NP", False),
    ("WITH_SETPROCTITLE", False),
    ("HAS_PDEATHSIG", False),
)

_log = logging.getLogger(__name__)


def _sink_help(label: str, prefix: str) -> list[str]:
    return [
        f"{label} sink options:",
        "══════════════════",
        f"    --{prefix}sink <name>  ──────────── Use the shared memory to sink {label} frames. Default: disabled.\n",
        f"    --{prefix}sink-mode <mode>  ─────── Set {label} sink permissions (like 777). Default: 660.\n",
        f"    --{prefix}sink-rm  ──────────────── Remove shared memory on stop. Default: disabled.\n",
        f"    --{prefix}sink-client-ttl <sec>  ── Client TTL. Default: 10.\n",
        f"    --{prefix}sink-timeout <sec>  ───── Timeout for lock. Default: 1.\n",
    ]


def render_help(options: Options) -> str:
    """Return the help text, showing the defaults held by ``options``."""
    opts = options
    formats = ", ".join(FORMATS)
    standards = ", ".join(STANDARDS)
    io_methods = ", ".join(IO_METHODS)
    lines = [
        "\nmjpegstreamer - Lightweight and fast MJPEG-HTTP streamer",
        "═══════════════════════════════════════════════════",
        f"Version: {VERSION}\n",
        "Capturing options:",
        "══════════════════",
        f"    -d|--device </dev/path>  ───────────── Path to V4L2 device. Default: {opts.device}.\n",
        f"    -i|--input <N>  ────────────────────── Input channel. Default: {opts.input}.\n",
        f"    -r|--resolution <WxH>  ─────────────── Initial image resolution. Default: {opts.width}x{opts.height}.\n",
        "    -m|--format <fmt>  ─────────────────── Image format.",
        f"                                           Available: {formats}; default: YUYV.\n",
        "    -a|--tv-standard <std>  ────────────── Force TV standard.",
        f"                                           Available: {standards}; default: disabled.\n",
        "    -I|--io-method <method>  ───────────── Set V4L2 IO method (see kernel documentation).",
        "                                           Changing of this parameter may increase the performance. Or not.",
        f"                                           Available: {io_methods}; default: MMAP.\n",
        "    -f|--desired-fps <N>  ──────────────── Desired FPS. Default: maximum possible.\n",
        "    -z|--min-frame-size <N>  ───────────── Drop frames smaller then this limit. Useful if the device",
        f"                                           produces small-sized garbage frames. Default: {opts.min_frame_size} bytes.\n",
        "    -n|--persistent  ───────────────────── Don't re-initialize device on timeout. Default: disabled.\n",
        "    -t|--dv-timings  ───────────────────── Enable DV-timings querying and events processing",
        "                                           to automatic resolution change. Default: disabled.\n",
        "    -b|--buffers <N>  ──────────────────── The number of buffers to receive data from the device.",
        "                                           Each buffer may processed using an independent thread.",
        f"                                           Default: {opts.n_bufs} (the number of CPU cores (but not more than 4) + 1).\n",
        "    -w|--workers <N>  ──────────────────── The number of worker threads but not more than buffers.",
        f"                                           Default: {opts.n_workers} (the number of CPU cores (but not more than 4)).\n",
        f"    -q|--quality <N>  ──────────────────── Set quality of JPEG encoding from 1 to 100 (best). Default: {opts.jpeg_quality}.",
        "                                           Note: If HW encoding is used (JPEG source format selected),",
        "                                           this parameter attempts to configure the camera",
        "                                           or capture device hardware's internal encoder.",
        "                                           It does not re-encode MJPEG to MJPEG to change the quality level",
        "                                           for sources that already output MJPEG.\n",
        "    -c|--encoder <type>  ───────────────── Use specified encoder. It may affect the number of workers.",
        "                                           Available:",
        "                                             * CPU  ──────── Software MJPEG encoding (default);",
        "                                             * HW  ───────── Use pre-encoded MJPEG frames directly from camera hardware;",
        "                                             * M2M-VIDEO  ── GPU-accelerated MJPEG encoding using V4L2 M2M video interface;",
        "                                             * M2M-IMAGE  ── GPU-accelerated JPEG encoding using V4L2 M2M image interface;",
        "                                             * NOOP  ─────── Don't compress MJPEG stream (do nothing).\n",
        "    -g|--glitched-resolutions <WxH,...>  ─ It doesn't do anything. Still here for compatibility.\n",
        "    -k|--blank <path>  ─────────────────── Path to JPEG file that will be shown when the device is disconnected",
        "                                           during the streaming. Default: black screen 640x480 with 'NO SIGNAL'.\n",
        "    -K|--last-as-blank <sec>  ──────────── Show the last frame received from the camera after it was disconnected,",
        "                                           but no more than specified time (or endlessly if 0 is specified).",
        "                                           If the device has not yet been online, display 'NO SIGNAL' or the image",
        "                                           specified by option --blank. Default: disabled.",
        "                                           Note: currently this option has no effect on memory sinks.\n",
        "    -l|--slowdown  ─────────────────────── Slowdown capturing to 1 FPS or less when no stream or sink clients",
        "                                           are connected. Useful to reduce CPU consumption. Default: disabled.\n",
        f"    --device-timeout <sec>  ────────────── Timeout for device querying. Default: {opts.device_timeout}.\n",
        "    --device-error-delay <sec>  ────────── Delay before trying to connect to the device again",
        f"                                           after an error (timeout for example). Default: {opts.device_error_delay}.\n",
        "    --m2m-device </dev/path>  ──────────── Path to V4L2 M2M encoder device. Default: auto select.\n",
        "Image control options:",
        "══════════════════════",
        "    --image-default  ────────────────────── Reset all image settings below to default. Default: no change.\n",
        "    --brightness <N|auto|default>  ──────── Set brightness. Default: no change.\n",
        "    --contrast <N|default>  ─────────────── Set contrast. Default: no change.\n",
        "    --saturation <N|default>  ───────────── Set saturation. Default: no change.\n",
        "    --hue <N|auto|default>  ─────────────── Set hue. Default: no change.\n",
        "    --gamma <N|default> ─────────────────── Set gamma. Default: no change.\n",
        "    --sharpness <N|default>  ────────────── Set sharpness. Default: no change.\n",
        "    --backlight-compensation <N|default>  ─ Set backlight compensation. Default: no change.\n",
        "    --white-balance <N|auto|default>  ───── Set white balance. Default: no change.\n",
        "    --gain <N|auto|default>  ────────────── Set gain. Default: no change.\n",
        "    --color-effect <N|default>  ─────────── Set color effect. Default: no change.\n",
        "    --rotate <N|default>  ───────────────── Set rotation. Default: no change.\n",
        "    --flip-vertical <1|0|default>  ──────── Set vertical flip. Default: no change.\n",
        "    --flip-horizontal <1|0|default>  ────── Set horizontal flip. Default: no change.\n",
        "    Hint: use v4l2-ctl --list-ctrls-menus to query available controls of the device.\n",
        "HTTP server options:",
        "════════════════════",
        f"    -s|--host <address>  ──────── Listen on Hostname or IP. Default: {opts.host}.\n",
        f"    -p|--port <N>  ────────────── Bind to this TCP port. Default: {opts.port}.\n",
        "    -U|--unix <path>  ─────────── Bind to UNIX domain socket. Default: disabled.\n",
        "    -D|--unix-rm  ─────────────── Try to remove old UNIX socket file before binding. Default: disabled.\n",
        "    -M|--unix-mode <mode>  ────── Set UNIX socket file permissions (like 777). Default: disabled.\n",
        "    -S|--systemd  ─────────────── Bind to systemd socket for socket activation.\n",
        "    --user <name>  ────────────── HTTP basic auth user. Default: disabled.\n",
        "    --passwd <str>  ───────────── HTTP basic auth passwd. Default: empty.\n",
        "    --static <path> ───────────── Path to dir with static files instead of embedded root index page.",
        "                                  Symlinks are not supported for security reasons. Default: disabled.\n",
        "    -e|--drop-same-frames <N>  ── Don't send identical frames to clients, but no more than specified number.",
        "                                  It can significantly reduce the outgoing traffic, but will increase",
        "                                  the CPU loading. Don't use this option with analog signal sources",
        "                                  or webcams, it's useless. Default: disabled.\n",
        "    -R|--fake-resolution <WxH>  ─ Override image resolution for the /state. Default: disabled.\n",
        "    --tcp-nodelay  ────────────── Set TCP_NODELAY flag to the client /stream socket. Only for TCP socket.",
        "                                  Default: disabled.\n",
        "    --allow-origin <str>  ─────── Set Access-Control-Allow-Origin header. Default: disabled.\n",
        f"    --server-timeout <sec>  ───── Timeout for client connections. Default: {opts.server_timeout}.\n",
        *_sink_help("JPEG", ""),
        *_sink_help("RAW", "raw-"),
        *_sink_help("H264", "h264-"),
        f"    --h264-bitrate <kbps>  ───────── H264 bitrate in Kbps. Default: {opts.h264_bitrate}.\n",
        f"    --h264-gop <N>  ──────────────── Intarval between keyframes. Default: {opts.h264_gop}.\n",
        "    --h264-m2m-device </dev/path>  ─ Path to V4L2 M2M encoder device. Default: auto select.\n",
        "    --exit-on-no-clients <sec> ──── Exit the program if there have been no stream or sink clients",
        "                                    or any HTTP requests in the last N seconds. Default: 0 (disabled)\n",
        "Logging options:",
        "════════════════",
        "    --log-level <N>  ──── Verbosity level of messages from 0 (info) to 3 (debug).",
        "                          Enabling debugging messages can slow down the program.",
        "                          Available levels: 0 (info), 1 (performance), 2 (verbose), 3 (debug).",
        f"                          Default: {opts.log_level}.\n",
        "    --perf  ───────────── Enable performance messages (same as --log-level=1). Default: disabled.\n",
        "    --verbose  ────────── Enable verbose messages and lower (same as --log-level=2). Default: disabled.\n",
        "    --debug  ──────────── Enable debug messages and lower (same as --log-level=3). Default: disabled.\n",
        "    --force-log-colors  ─ Force color logging. Default: colored if stderr is a TTY.\n",
        "    --no-log-colors  ──── Disable color logging. Default: ditto.\n",
        "Help options:",
        "═════════════",
        "    -h|--help  ─────── Print this text and exit.\n",
        "    -v|--version  ──── Print version and exit.\n",
        "    --features  ────── Print list of supported features.\n",
    ]
    return "".join(line + "\n" for line in lines)


def render_features() -> str:
    """Return the list of optional features, one ``+ NAME`` or ``- NAME`` per line."""
    return "".join(f"{'+' if present else '-'} {name}\n" for name, present in FEATURES)


def _python_log_level(level: int) -> int:
    if level >= LOG_LEVEL_DEBUG:
        return logging.DEBUG
    if level >= LOG_LEVEL_VERBOSE:
        return logging.DEBUG
    if level > LOG_LEVEL_INFO:
        return logging.INFO
    return logging.INFO


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse the command line and answer help, version or features requests.

    Returns 1 when the command line is invalid, 0 otherwise.
    """
    if argv is None:
        argv = sys.argv[1:]
    try:
        options = parse_options(argv)
    except OptionsError as exc:
        print(exc)
        return 1

    if options.action == "help":
        sys.stdout.write(render_help(Options()))
        return 0
    if options.action == "version":
        print(VERSION)
        return 0
    if options.action == "features":
        sys.stdout.write(render_features())
        return 0

    logging.basicConfig(level=_python_log_level(options.log_level))
    _log.info("Using V4L2 device: %s", options.device)
    _log.info("Using desired FPS: %d", options.desired_fps)
    _log.debug("Effective options: %s", asdict(options))
    _log.info("Available encoders: %s; selected: %s", ", ".join(ENCODER_TYPES), options.encoder)
    return 0