"""One-shot loopback HTTP listener for the OIDC redirect.

:class:`RedirectListener` binds a plain :class:`http.server.HTTPServer` to a
loopback address and services requests on a background thread until the
first redirect arrives. That request's ``code``, ``nonce`` and ``state``
query parameters become the result of a :class:`concurrent.futures.Future`,
the browser gets a static success page, and the socket is closed. A second
request is never handled: an authorization code is single-use, and a
long-lived route would leak the parameters to whoever connects next.

The listener has no overall timeout. The wait ends when a redirect is
captured, when :meth:`RedirectListener.stop` is called, or when the server
loop fails; the socket is released on every one of those paths. A single
connection that never sends a request is dropped after
:data:`REQUEST_TIMEOUT`, so it can neither block the real redirect nor
keep a stop request waiting.

See Also:
    :mod:`vaultoidc.login.oidc` for the handshake that drives the listener.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urljoin, urlsplit

from vaultoidc.exceptions import CaptureError, SetupError
from vaultoidc.models import CapturedParams

logger = logging.getLogger(__name__)

SUCCESS_PAGE = (
    "<html><body><h2>Authentication successful! You can close this window "
    "and return to the terminal.</h2></body></html>"
)

# How often the serving thread checks for a stop request while idle.
POLL_INTERVAL = 0.25

# Seconds a connection may sit without sending a complete request line.
# Browsers preconnect speculatively; such a socket is dropped after this.
REQUEST_TIMEOUT = 2.0

_CAPTURED_KEYS = ("code", "nonce", "state")


def parse_redirect(base_url: str, path: str) -> CapturedParams:
    """Extract the handshake parameters from a redirect request path.

    The request target is resolved against *base_url* first, so both
    origin-form (``/oidc/callback?code=...``) and absolute-form targets are
    handled. Missing parameters become empty strings; when a key repeats,
    the last value wins.

    Args:
        base_url: The listener's base URL, e.g. ``http://localhost:8250``.
        path: The raw request target from the HTTP request line.

    Returns:
        The captured parameters.
    """
    url = urljoin(base_url, path)
    query = parse_qs(urlsplit(url).query, keep_blank_values=True)
    values = {key: query[key][-1] for key in _CAPTURED_KEYS if key in query}
    return CapturedParams(**values)


class _RedirectServer(HTTPServer):
    """HTTPServer that remembers the first redirect it handled."""

    def __init__(self, bind_address: tuple[str, int], base_url: str) -> None:
        super().__init__(bind_address, _RedirectHandler)
        self.base_url = base_url
        self.captured: Optional[CapturedParams] = None
        self.timeout = POLL_INTERVAL

    def handle_error(self, request: Any, client_address: Any) -> None:
        logger.exception("Error while handling redirect from %s", client_address[0])


class _RedirectHandler(BaseHTTPRequestHandler):
    server: _RedirectServer
    timeout = REQUEST_TIMEOUT

    def do_GET(self) -> None:  # noqa: N802
        self._capture(send_body=True)

    def do_POST(self) -> None:  # noqa: N802
        self._capture(send_body=True)

    def do_HEAD(self) -> None:  # noqa: N802
        self._capture(send_body=False)

    def _capture(self, send_body: bool) -> None:
        if self.server.captured is None:
            self.server.captured = parse_redirect(self.server.base_url, self.path)

        body = SUCCESS_PAGE.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Connection", "close")
        self.end_headers()
        if send_body:
            self.wfile.write(body)
        self.close_connection = True

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class RedirectListener:
    """Receive exactly one OAuth2 redirect on a loopback port.

    The socket is bound in the constructor so that a port conflict surfaces
    synchronously, before the caller hands out an authorization URL that
    nothing would answer.

    Args:
        bind_address: ``(host, port)`` to bind, normally ``("127.0.0.1", 8250)``.
        base_url: URL the browser reaches the listener at, used to resolve
            request paths (``http://localhost:8250``).

    Raises:
        SetupError: If the address cannot be bound (port in use, permission
            denied). Never retried.

    Example::

        listener = RedirectListener(("127.0.0.1", 8250), "http://localhost:8250")
        handle = listener.start()
        params = handle.result()   # blocks until the browser is redirected
    """

    def __init__(self, bind_address: tuple[str, int], base_url: str) -> None:
        host, port = bind_address
        try:
            self._server = _RedirectServer(bind_address, base_url)
        except OSError as exc:
            raise SetupError(
                f"Cannot listen for the OIDC redirect on {host}:{port}: "
                f"{exc.strerror or exc}"
            ) from exc

        self._base_url = base_url
        self._future: Future[CapturedParams] = Future()
        self._stop_requested = threading.Event()
        self._thread: Optional[threading.Thread] = None
        logger.debug("Redirect listener bound to %s:%d", host, port)

    @property
    def url(self) -> str:
        """Base URL the listener answers on."""
        return self._base_url

    @property
    def server_address(self) -> tuple[str, int]:
        """The ``(host, port)`` actually bound."""
        host, port = self._server.server_address[:2]
        return str(host), int(port)

    @property
    def handle(self) -> Future[CapturedParams]:
        return self._future

    def start(self) -> Future[CapturedParams]:
        """Start serving on a daemon thread and return the result handle.

        Calling this more than once returns the same handle.
        """
        if self._thread is None and not self._stop_requested.is_set():
            self._thread = threading.Thread(
                target=self._serve,
                name=f"oidc-redirect-{self.server_address[1]}",
                daemon=True,
            )
            self._thread.start()
        return self._future

    def stop(self, wait: bool = True) -> None:
        """Stop listening and release the port.

        Safe to call from any thread and more than once. If no redirect has
        been captured yet, the handle fails with :class:`CaptureError`.

        A connection that is open but idle delays shutdown by at most
        :data:`REQUEST_TIMEOUT` seconds, after which the server drops it and
        notices the stop request.

        Args:
            wait: Block until the serving thread has closed the socket.
        """
        self._stop_requested.set()
        if self._thread is None:
            # Never started: nothing else will ever close the socket.
            self._close()
            self._finish()
            return
        if wait and self._thread is not threading.current_thread():
            self._thread.join(timeout=REQUEST_TIMEOUT + 2 * POLL_INTERVAL + 1)
            if self._thread.is_alive():
                logger.warning(
                    "Redirect listener on port %d did not stop in time",
                    self.server_address[1],
                )

    def _serve(self) -> None:
        if not self._future.set_running_or_notify_cancel():
            self._close()
            return
        failure: Optional[BaseException] = None
        try:
            while self._server.captured is None and not self._stop_requested.is_set():
                self._server.handle_request()
        except BaseException as exc:
            failure = exc
        finally:
            self._close()

        if failure is not None:
            logger.debug("Redirect listener failed: %s", failure)
            self._future.set_exception(failure)
        else:
            self._finish()

    def _close(self) -> None:
        self._server.server_close()

    def _finish(self) -> None:
        if self._future.done():
            return
        captured = self._server.captured
        if captured is not None:
            logger.debug("Redirect captured, listener closed")
            self._future.set_result(captured)
        else:
            logger.debug("Redirect listener cancelled before a redirect arrived")
            self._future.set_exception(
                CaptureError("OIDC login was cancelled before the browser redirect arrived")
            )
