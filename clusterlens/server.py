"""Metrics and health endpoint, configuration handlers and request logging."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Mapping

from clusterlens.cache import add_remote_cache, remove_remote_cache
from clusterlens.metrics import ANALYZER_ERRORS_METRIC

_TRUE_VALUES = frozenset({"1", "t", "true"})
_FALSE_VALUES = frozenset({"0", "f", "false"})


@dataclass
class Health:
    """Counters reported by the health endpoint."""

    status: str = "ok"
    success: int = 0
    failure: int = 0

    def to_json(self) -> str:
        """Return the indented JSON form of the health record."""
        return json.dumps(asdict(self), indent=2)


HEALTH = Health()


def _as_bytes(data: Any) -> bytes:
    return data if isinstance(data, bytes) else str(data).encode("utf-8")


class MetricsServer:
    """HTTP server answering ``/healthz`` and ``/metrics``."""

    def __init__(
        self,
        port: int | str = 8081,
        *,
        host: str = "",
        logger: logging.Logger | None = None,
        metrics: Any = None,
    ):
        self.port = int(port)
        self.host = host
        self.logger = logger or logging.getLogger(__name__)
        self.metrics = metrics if metrics is not None else ANALYZER_ERRORS_METRIC
        self.ready = threading.Event()
        self._httpd: ThreadingHTTPServer | None = None

    @property
    def server_address(self) -> tuple[str, int] | None:
        """The bound address, once :meth:`serve` has started."""
        return self._httpd.server_address if self._httpd else None

    def _handler(self) -> type[BaseHTTPRequestHandler]:
        metrics = self.metrics

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:  # noqa: N802
                path = self.path.split("?", 1)[0]
                if path == "/healthz":
                    self.send_response(200)
                    self.send_header("Content-Length", "0")
                    self.end_headers()
                elif path == "/metrics":
                    body = _as_bytes(metrics.expose())
                    self.send_response(200)
                    self.send_header("Content-Type", "text/plain; version=0.0.4; charset=utf-8")
                    self.send_header("Content-Length", str(len(body)))
                    self.end_headers()
                    self.wfile.write(body)
                else:
                    self.send_response(404)
                    self.send_header("Content-Length", "0")
                    self.end_headers()

            def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
                return None

        return Handler

    def serve(self) -> None:
        """Bind the port and serve until :meth:`shutdown` is called."""
        self.logger.info("binding metrics to %s", self.port)
        self._httpd = ThreadingHTTPServer((self.host, self.port), self._handler())
        self.ready.set()
        self._httpd.serve_forever()

    def shutdown(self) -> None:
        """Stop serving and release the port."""
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        self._httpd = None
        self.ready.clear()


def get_bool_param(param: str) -> bool:
    """Parse a boolean query parameter; anything unrecognised is ``False``."""
    value = param.lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return False


def add_config(config: Any, bucket_name: str, region: str) -> str:
    """Configure a remote cache bucket and return the status message."""
    if not bucket_name or not region:
        raise ValueError("BucketName & Region are required")
    add_remote_cache(config, bucket_name, region)
    return "Configuration updated."


def remove_config(config: Any, bucket_name: str) -> str:
    """Remove the remote cache configuration and return the status message."""
    remove_remote_cache(config, bucket_name)
    return "Successfully removed the remote cache"


def log_request(
    logger: logging.Logger,
    fields: Mapping[str, Any],
    status_code: int,
    message: str,
) -> None:
    """Log a handled request; status codes of 400 and above log as errors."""
    level = logging.ERROR if status_code >= 400 else logging.INFO
    logger.log(level, message, extra={"fields": dict(fields)})