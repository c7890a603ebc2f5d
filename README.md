# mjpegstreamer

Building blocks of an MJPEG-over-HTTP streamer for Linux video capture
devices. It has no dependencies outside the standard library.

## What is in the package

- `mjpegstreamer.path.simplify_request_path(path)` collapses `//`, `/./` and
  `/../` segments of a request path, so that the result never climbs above the
  root.
- `mjpegstreamer.static.find_static_file_path(root_path, request_path)`
  returns the readable regular file that a request maps to under a static
  directory, or `None`. A directory maps to its `index.html`; symlinks are not
  followed.
- `mjpegstreamer.mime.guess_mime_type(path)` guesses a content type from the
  file extension, falling back to `application/misc`.
- `mjpegstreamer.uri.get_true(params, key)` tells whether a query parameter is
  `1...`, `true` or `yes`; `get_string(params, key)` returns it percent-encoded,
  or `None` when absent. `params` is a mapping or a sequence of pairs, and keys
  are matched case-insensitively.
- `mjpegstreamer.binding.bind_unix(path, rm, mode)` returns a non-blocking
  listening UNIX socket, optionally removing an old socket file first and
  setting its permissions. `bind_systemd(environ=None)` takes the first socket
  handed over by systemd socket activation and closes any extra ones. Both
  raise `BindError` on failure.
- `mjpegstreamer.workers.WorkersPool` runs jobs on a number of threads
  (`Worker`), hands finished workers back in the order they were assigned
  (`wait`, `assign`) and computes the pacing delay before the next capture
  (`get_fluency_delay`). It can be used as a context manager; `close` stops
  the threads.
- `mjpegstreamer.stream.Stream` decides which `Frame` clients and sinks see:
  the live frame, the last live frame (forever or for `last_as_blank`
  seconds), or the blank frame. See `expose_frame`, `has_clients` and
  `loop_break`.
- `mjpegstreamer.options.parse_options(argv)` parses the streamer's command
  line into an `Options` value, raising `OptionsError` on invalid input;
  `parse_resolution(text, limited)` reads `WxH` values.
- `mjpegstreamer.helptext.render_help(options)` and `render_features()` return
  the help and feature listings.

## Command line

```
mjpegstreamer --help
mjpegstreamer --version
mjpegstreamer --features
```

`--help` prints every option with its default value, `--version` prints the
version and `--features` prints the optional features, one `+ NAME` or
`- NAME` per line. An invalid option prints a message and exits with status 1.

## Example

```python
from mjpegstreamer.path import simplify_request_path
from mjpegstreamer.options import parse_options

assert simplify_request_path("/foo/bar/../../../etc/passwd") == "/etc/passwd"

options = parse_options(["--resolution", "1280x720", "--port", "8081"])
assert (options.width, options.height, options.port) == (1280, 720, 8081)
```

## What the package does not do

It does not open or capture from video devices, encode JPEG or H264, publish
frames to shared memory, or serve HTTP. The `mjpegstreamer` command parses and
checks its options, answers `--help`, `--version` and `--features`, and
otherwise logs the chosen device and settings and exits; it does not stream.
`Stream` works with sink and H264 objects that the caller supplies.

## Tests

```
pip install .[test]
pytest
```