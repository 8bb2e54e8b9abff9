"""Shared test fixtures for restbase.

Provides helpers for building clients backed by :class:`httpx.MockTransport`
and resets the global output manager between tests.  These fixtures are
discovered by pytest automatically.
"""

from __future__ import annotations

import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable

import httpx
import pytest

from restbase.client import RestClient
from restbase.output import OutputManager, reset_output, set_output


BASE_URL = "https://api.example.com/v1/"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test."""
    yield
    reset_output()


@pytest.fixture
def verbose_output() -> OutputManager:
    """Install a plain, verbose OutputManager so debug lines reach stderr."""
    output = OutputManager(no_color=True, verbose=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_client() -> Callable[..., RestClient]:
    """Factory building a RestClient whose transport is a handler function.

    Clients created through the factory are closed after the test.
    """
    created: list[RestClient] = []

    def factory(handler: Callable[[httpx.Request], Any], **kwargs: Any) -> RestClient:
        kwargs.setdefault("timeout", None)
        client = RestClient(
            kwargs.pop("base_url", BASE_URL),
            transport=httpx.MockTransport(handler),
            **kwargs,
        )
        created.append(client)
        return client

    yield factory

    for client in created:
        client.close()


# ---------------------------------------------------------------------------
# Local HTTP server
# ---------------------------------------------------------------------------


class _JSONHandler(BaseHTTPRequestHandler):
    """Answers every GET with ``{"ok": true, "path": ...}`` after a short pause."""

    protocol_version = "HTTP/1.1"

    def do_GET(self) -> None:
        time.sleep(0.02)
        body = json.dumps({"ok": True, "path": self.path}).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        # Keep test output clean
        pass


@pytest.fixture
def local_server() -> str:
    """Serve JSON over real sockets on 127.0.0.1 and yield the base URL.

    Connections are kept alive, so pooled connections really are reused.
    """
    server = ThreadingHTTPServer(("127.0.0.1", 0), _JSONHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}/"
    server.shutdown()
    server.server_close()
