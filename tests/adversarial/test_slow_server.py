"""Adversarial tests: servers that trickle or stall must not hang a fetch."""

from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from arcshell.core.errors import FetchError
from arcshell.core.fetcher import Fetcher
from arcshell.models.artifacts import ArtifactDescriptor

TIMEOUT = 0.5


class _SlowHandler(BaseHTTPRequestHandler):
    """``/trickle`` sends a byte every 50ms; ``/stall`` sends a few bytes, then nothing."""

    def do_GET(self) -> None:
        self.send_response(200)
        self.send_header("Content-Length", "100000")
        self.end_headers()
        stop = self.server.stop
        try:
            if self.path == "/stall":
                self.wfile.write(b"x" * 10)
                self.wfile.flush()
                stop.wait(30)
                return
            while not stop.is_set():
                self.wfile.write(b"x")
                self.wfile.flush()
                stop.wait(0.05)
        except OSError:
            pass  # client gave up

    def log_message(self, format, *args) -> None:
        pass


@pytest.fixture
def slow_server(monkeypatch):
    monkeypatch.setenv("NO_PROXY", "127.0.0.1")
    server = ThreadingHTTPServer(("127.0.0.1", 0), _SlowHandler)
    server.daemon_threads = True
    server.stop = threading.Event()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.stop.set()
    server.shutdown()
    server.server_close()


def _descriptor(url: str) -> ArtifactDescriptor:
    return ArtifactDescriptor(name="slow", version="1.0", url=url, expected_digest=b"\0" * 32)


class TestSlowServer:
    def test_trickle_is_cut_off_at_deadline(self, store, slow_server):
        started = time.monotonic()
        with pytest.raises(FetchError) as excinfo:
            Fetcher(store, timeout=TIMEOUT).fetch(_descriptor(f"{slow_server}/trickle"))

        assert excinfo.value.timed_out
        assert time.monotonic() - started < 5
        assert list(store.base_path.iterdir()) == []

    def test_stall_mid_body_is_timed_out(self, store, slow_server):
        started = time.monotonic()
        with pytest.raises(FetchError) as excinfo:
            Fetcher(store, timeout=TIMEOUT).fetch(_descriptor(f"{slow_server}/stall"))

        assert excinfo.value.timed_out
        assert time.monotonic() - started < 5
        assert list(store.base_path.iterdir()) == []
