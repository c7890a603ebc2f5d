[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mjpegstreamer"
version = "0.1.0"
description = "Building blocks of an MJPEG-over-HTTP streamer: request path and static file handling, listening sockets, worker pools, frame exposure and command-line options"
requires-python = ">=3.10"
dependencies = []
keywords = ["mjpeg", "streaming", "http", "video", "v4l2", "camera"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video :: Capture",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mjpegstreamer = "mjpegstreamer.helptext:main"

[tool.hatch.build.targets.wheel]
packages = ["mjpegstreamer"]

[tool.pytest.ini_options]
addopts = "-ra"
