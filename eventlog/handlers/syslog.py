"""Handler sending events to a syslog daemon in BSD format."""

from __future__ import annotations

import enum
import logging
import os
import socket
import sys
import threading
from typing import Any, Optional, Tuple

from ..errors import HandlerConfigError
from ..event import Event
from ..formatter import SIMPLE_FORMAT, TextFormatter

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_PATHS = ("/dev/log", "/var/run/syslog", "/var/run/log")

TIMESTAMP_FORMAT = "%b %d %H:%M:%S"


class Facility(enum.IntEnum):
    KERN = 0 << 3
    USER = 1 << 3
    MAIL = 2 << 3
    DAEMON = 3 << 3
    AUTH = 4 << 3
    SYSLOG = 5 << 3
    LPR = 6 << 3
    NEWS = 7 << 3
    UUCP = 8 << 3
    CRON = 9 << 3
    AUTHPRIV = 10 << 3
    FTP = 11 << 3
    LOCAL0 = 16 << 3
    LOCAL1 = 17 << 3
    LOCAL2 = 18 << 3
    LOCAL3 = 19 << 3
    LOCAL4 = 20 << 3
    LOCAL5 = 21 << 3
    LOCAL6 = 22 << 3
    LOCAL7 = 23 << 3


def _default_tag() -> str:
    return os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "python"


def _split_host_port(address: str) -> Tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise HandlerConfigError(f"syslog address must be host:port, got {address!r}")
    return host.strip("[]") or "localhost", int(port)


def format_message(
    log_event: Event, text: str, facility: int, tag: str, pid: Optional[int] = None
) -> bytes:
    """Build one BSD syslog datagram: ``<PRI>Mmm dd hh:mm:ss.mmm tag[pid]: msg``."""

    priority = int(facility) | int(log_event.level)
    stamp = log_event.time
    timestamp = f"{stamp.strftime(TIMESTAMP_FORMAT)}.{stamp.microsecond // 1000:03d}"
    if pid is None:
        pid = os.getpid()
    return f"<{priority}>{timestamp} {tag}[{pid}]: {text}\n".encode("utf-8")


class SyslogHandler:
    """Write events to syslog over a unix socket, UDP or TCP.

    The connection is made at construction and a lost connection is re-dialed
    once per event before the failure is raised.
    """

    def __init__(
        self,
        network: str = "",
        address: str = "",
        facility: Facility | int = Facility.USER,
        template: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> None:
        self.network = network or "unix"
        self.address = address
        self.facility = Facility(facility) if facility else Facility.USER
        self.tag = tag or _default_tag()
        self.formatter = TextFormatter(template or SIMPLE_FORMAT)
        self._lock = threading.Lock()
        self._sock: Optional[socket.socket] = None

        try:
            self._dial()
        except OSError as exc:
            raise HandlerConfigError(f"unable to connect to syslog: {exc}") from exc

    def _dial(self) -> None:
        if self._sock is not None:
            self._close_socket()

        if self.network == "unix":
            paths = (self.address,) if self.address else DEFAULT_SOCKET_PATHS
            last_error: Optional[OSError] = None
            for kind in (socket.SOCK_DGRAM, socket.SOCK_STREAM):
                for path in paths:
                    sock = socket.socket(socket.AF_UNIX, kind)
                    try:
                        sock.connect(path)
                    except OSError as exc:
                        sock.close()
                        last_error = exc
                        continue
                    self._sock = sock
                    return
            raise OSError(f"could not find listening syslog daemon ({last_error})")

        if self.network in ("udp", "tcp"):
            host, port = _split_host_port(self.address)
            kind = socket.SOCK_DGRAM if self.network == "udp" else socket.SOCK_STREAM
            self._sock = _connect_inet(host, port, kind)
            return

        raise HandlerConfigError(f"unsupported syslog network: {self.network!r}")

    def _close_socket(self) -> None:
        sock, self._sock = self._sock, None
        if sock is not None:
            try:
                sock.close()
            except OSError:
                pass

    def event(self, log_event: Event) -> None:
        data = format_message(
            log_event, self.formatter.format(log_event), self.facility, self.tag
        )

        with self._lock:
            try:
                self._send(data)
                return
            except OSError as exc:
                logger.warning("syslog write failed, reconnecting: %s", exc)

            self._dial()
            self._send(data)

    def _send(self, data: bytes) -> None:
        if self._sock is None:
            raise OSError("syslog socket is closed")
        self._sock.sendall(data)

    def close(self) -> None:
        with self._lock:
            self._close_socket()


def _connect_inet(host: str, port: int, kind: Any) -> socket.socket:
    last_error: Optional[OSError] = None
    for family, socktype, proto, _, sockaddr in socket.getaddrinfo(host, port, type=kind):
        sock = socket.socket(family, socktype, proto)
        try:
            sock.connect(sockaddr)
        except OSError as exc:
            sock.close()
            last_error = exc
            continue
        return sock
    raise last_error or OSError(f"cannot resolve {host}:{port}")
