"""Static file server entry point and connection lifecycle orchestration."""

from __future__ import annotations

import argparse
import json
import logging
import socket
import time
from collections.abc import Callable
from pathlib import Path

from config import (
    HOST,
    KEEPALIVE_TIMEOUT_SECS,
    LOG_FORMAT,
    LOG_LEVEL,
    MAX_KEEPALIVE_REQUESTS,
    PORT,
    REQUEST_QUEUE_SIZE,
    ROOT_DIR,
    SOCKET_TIMEOUT_SECS,
    WORKER_COUNT,
)
from handlers.static_handler import StaticFileHandler
from request import HTTPRequest, HTTPRequestParseError
from resolver import StaticFileResolver
from response import REASON_PHRASES, HTTPResponse
from socket_handler import HTTPReadError, read_http_request_message, write_http_response_message
from thread_pool import ThreadPool

logger = logging.getLogger(__name__)

Handler = Callable[[HTTPRequest], HTTPResponse]


class HTTPServer:
    def __init__(
        self,
        root: str | Path = ROOT_DIR,
        host: str = HOST,
        port: int = PORT,
        worker_count: int = WORKER_COUNT,
        request_queue_size: int = REQUEST_QUEUE_SIZE,
        *,
        keepalive_timeout_secs: int = KEEPALIVE_TIMEOUT_SECS,
        log_format: str = LOG_FORMAT,
        handler: Handler | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.worker_count = worker_count
        self.request_queue_size = request_queue_size
        self.keepalive_timeout_secs = keepalive_timeout_secs
        self.log_format = log_format
        self.handler = handler or StaticFileHandler(StaticFileResolver(root))

        self._server_socket: socket.socket | None = None
        self._pool: ThreadPool | None = None
        self._running = False

    def start(self) -> None:
        """Bind, listen and hand accepted clients to the worker pool until stopped."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server_socket:
            self._server_socket = server_socket
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(128)
            server_socket.settimeout(0.2)
            self.port = server_socket.getsockname()[1]
            self._pool = ThreadPool(
                worker_count=self.worker_count,
                queue_size=self.request_queue_size,
                handler=self._handle_client,
            )
            self._pool.start()
            logger.info("Serving on http://%s:%s", self.host, self.port)

            self._running = True
            try:
                while self._running:
                    try:
                        client_socket, address = server_socket.accept()
                    except socket.timeout:
                        continue
                    except OSError:
                        break

                    if self._pool is None or not self._pool.submit(client_socket, address):
                        self._send_queue_full_response(client_socket, address)
            finally:
                if self._pool is not None:
                    self._pool.shutdown()
                    self._pool = None

    def stop(self) -> None:
        self._running = False
        if self._server_socket is not None:
            self._server_socket.close()
            self._server_socket = None
        if self._pool is not None:
            self._pool.shutdown()
            self._pool = None

    def _send_queue_full_response(
        self, client_socket: socket.socket, address: tuple[str, int]
    ) -> None:
        with client_socket:
            started_at = time.perf_counter()
            response = HTTPResponse(
                status_code=503,
                headers={"Connection": "close"},
                body="Service Unavailable",
            )
            try:
                bytes_sent = write_http_response_message(client_socket, response)
            except OSError:
                return
            self._log_access(address, "-", "-", response, 0, bytes_sent, started_at, False)

    def _reject(
        self,
        client_socket: socket.socket,
        address: tuple[str, int],
        status_code: int,
        bytes_in: int,
        started_at: float,
    ) -> None:
        response = HTTPResponse(
            status_code=status_code,
            headers={"Connection": "close"},
            body=REASON_PHRASES.get(status_code, "Bad Request"),
        )
        try:
            bytes_sent = write_http_response_message(client_socket, response)
        except OSError:
            return
        self._log_access(address, "-", "-", response, bytes_in, bytes_sent, started_at, False)

    def _handle_client(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        with client_socket:
            client_socket.settimeout(min(SOCKET_TIMEOUT_SECS, self.keepalive_timeout_secs))
            request_count = 0
            carry = b""
            while request_count < MAX_KEEPALIVE_REQUESTS:
                started_at = time.perf_counter()
                try:
                    raw_request, carry = read_http_request_message(client_socket, carry)
                except HTTPReadError as exc:
                    logger.debug("Read error from %s: %s", address[0], exc)
                    self._reject(client_socket, address, exc.status_code, 0, started_at)
                    return
                except OSError:
                    return

                if not raw_request:
                    return

                try:
                    request = HTTPRequest.from_bytes(raw_request)
                except HTTPRequestParseError as exc:
                    logger.debug("Rejected request from %s: %s", address[0], exc)
                    self._reject(
                        client_socket, address, exc.status_code, len(raw_request), started_at
                    )
                    return

                request_count += 1
                response = self._dispatch(request)
                should_close = not request.keep_alive or request_count >= MAX_KEEPALIVE_REQUESTS
                if should_close:
                    response.headers.setdefault("Connection", "close")
                else:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive",
                        (
                            f"timeout={self.keepalive_timeout_secs}, "
                            f"max={MAX_KEEPALIVE_REQUESTS - request_count}"
                        ),
                    )

                try:
                    bytes_sent = write_http_response_message(client_socket, response)
                except OSError as exc:
                    logger.debug("Write to %s failed: %s", address[0], exc)
                    return

                self._log_access(
                    address,
                    request.method,
                    request.path,
                    response,
                    len(raw_request),
                    bytes_sent,
                    started_at,
                    request_count > 1,
                )
                if should_close:
                    return

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        try:
            return self.handler(request)
        except Exception:
            logger.exception("Unhandled error serving %s %s", request.method, request.path)
            response = HTTPResponse(status_code=500, body="Internal Server Error")
            if request.method == "HEAD":
                return response.as_head()
            return response

    def _log_access(
        self,
        address: tuple[str, int],
        method: str,
        path: str,
        response: HTTPResponse,
        bytes_in: int,
        bytes_out: int,
        started_at: float,
        connection_reused: bool,
    ) -> None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        if self.log_format == "json":
            event = {
                "client": address[0],
                "method": method,
                "path": path,
                "status": response.status_code,
                "bytes_in": bytes_in,
                "bytes_out": bytes_out,
                "duration_ms": round(duration_ms, 3),
                "connection_reused": connection_reused,
            }
            logger.info(json.dumps(event, sort_keys=True))
            return

        logger.info(
            (
                "client=%s method=%s path=%s status=%s bytes_in=%s bytes_out=%s "
                "duration_ms=%.2f connection_reused=%s"
            ),
            address[0],
            method,
            path,
            response.status_code,
            bytes_in,
            bytes_out,
            duration_ms,
            connection_reused,
        )


def _directory(value: str) -> Path:
    path = Path(value)
    if not path.is_dir():
        raise argparse.ArgumentTypeError(f"not a directory: {value}")
    return path


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve a directory over HTTP")
    parser.add_argument("--root", type=_directory, default=Path(ROOT_DIR))
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--workers", type=int, default=WORKER_COUNT)
    parser.add_argument("--queue-size", type=int, default=REQUEST_QUEUE_SIZE)
    parser.add_argument("--keepalive-timeout", type=int, default=KEEPALIVE_TIMEOUT_SECS)
    parser.add_argument("--log-format", choices=["plain", "json"], default=LOG_FORMAT)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=LOG_LEVEL,
        type=str.upper,
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level)
    server = HTTPServer(
        root=args.root,
        host=args.host,
        port=args.port,
        worker_count=args.workers,
        request_queue_size=args.queue_size,
        keepalive_timeout_secs=args.keepalive_timeout,
        log_format=args.log_format,
    )
    try:
        server.start()
    except KeyboardInterrupt:
        server.stop()


if __name__ == "__main__":
    main()
