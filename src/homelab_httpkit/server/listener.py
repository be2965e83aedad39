"""Background WSGI listeners.

serve() and health() return as soon as the listener thread is started.
Bind and runtime failures are logged and kept on the returned handle, so a
caller that cares can wait for readiness and observe errors:

    handle = serve(":8080", app).wait_ready(timeout=5)
    ...
    handle.shutdown()
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from werkzeug.serving import BaseWSGIServer, make_server

from homelab_httpkit.errors import ServerStartError

if TYPE_CHECKING:
    from types import TracebackType

    from _typeshed.wsgi import WSGIApplication

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"


def parse_addr(addr: str) -> tuple[str, int]:
    """Split a listen address into host and port.

    Accepts ``":8080"``, ``"host:8080"``, ``"[::1]:8080"`` and ``"8080"``.
    An empty host means all interfaces.

    Raises:
        ValueError: If the port is missing or not a valid number.
    """
    addr = addr.strip()
    host, sep, port_text = addr.rpartition(":")
    if not sep:
        host, port_text = "", addr

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]

    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"Invalid listen address: {addr!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"Port out of range in listen address: {addr!r}")

    return host or DEFAULT_HOST, port


class ServerHandle:
    """A listener running on its own daemon thread.

    Attributes:
        name: Label used in logs and the thread name.
        addr: Address as given by the caller.
        error: Startup or runtime failure, None while healthy.
    """

    def __init__(self, name: str, addr: str, app: WSGIApplication):
        self.name = name
        self.addr = addr
        self.app = app
        self.error: ServerStartError | None = None
        self._server: BaseWSGIServer | None = None
        self._ready = threading.Event()
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=f"httpkit-{name}",
            daemon=True,
        )

    def start(self) -> ServerHandle:
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            host, port = parse_addr(self.addr)
            self._server = make_server(host, port, self.app, threaded=True)
        except (OSError, ValueError) as e:
            self._fail_start(str(e))
            return
        except SystemExit:
            # werkzeug exits instead of raising when bind() fails
            self._fail_start("could not bind address")
            return

        logger.info(f"[{self.name}] Listening on {host}:{self.port}")
        self._ready.set()

        try:
            self._server.serve_forever()
        except Exception as e:
            logger.error(f"[{self.name}] Listener stopped unexpectedly, error = {e}")
            self.error = ServerStartError(f"Listener stopped: {e}", addr=self.addr)
        finally:
            self._server.server_close()
            self._stopped.set()

    def _fail_start(self, reason: str) -> None:
        logger.error(f"[{self.name}] Listen failed on {self.addr}, error = {reason}")
        self.error = ServerStartError(f"Listen failed: {reason}", addr=self.addr)
        self._ready.set()
        self._stopped.set()

    def wait_ready(self, timeout: float | None = None) -> ServerHandle:
        """Block until the socket is bound.

        Raises:
            ServerStartError: If binding failed or did not finish within ``timeout``.
        """
        if not self._ready.wait(timeout):
            raise ServerStartError(
                f"Listener did not start within {timeout}s",
                addr=self.addr,
            )
        if self.error is not None:
            raise self.error
        return self

    @property
    def port(self) -> int | None:
        """Bound port, known once the listener is ready."""
        if self._server is None:
            return None
        return self._server.server_address[1]

    @property
    def running(self) -> bool:
        return self._ready.is_set() and not self._stopped.is_set()

    def wait_stopped(self, timeout: float | None = None) -> bool:
        """Block until the listener stops; False if still running after ``timeout``."""
        return self._stopped.wait(timeout)

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop serving and wait for the listener thread to exit."""
        self._ready.wait(timeout)
        if self._server is not None and not self._stopped.is_set():
            logger.info(f"[{self.name}] Shutting down listener on {self.addr}")
            self._server.shutdown()
        self._thread.join(timeout)

    def __enter__(self) -> ServerHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()


def serve(addr: str, app: WSGIApplication) -> ServerHandle:
    """Start the main listener on a background thread and return immediately."""
    logger.info(f"[Serve] Try to listen on: {addr}")
    return ServerHandle("serve", addr, app).start()


def health(addr: str, app: WSGIApplication) -> ServerHandle:
    """Start an independent health-check listener and return immediately."""
    logger.info(f"[Health] Try to monitor health condition on: {addr}")
    return ServerHandle("health", addr, app).start()
