"""Building blocks of an MJPEG-over-HTTP streamer: paths, sockets, workers, frames and options."""

__version__ = "0.1.0"