import errno
import socket
from enum import Enum

import paramiko
from paramiko.ssh_exception import NoValidConnectionsError


class SessionDisconnected(Exception):
    """Remote end dropped the session before reporting an exit status."""

    def __init__(self, message: str = "remote host disconnected"):
        super().__init__(message)


class FailureKind(str, Enum):
    AUTH_FAILED = "AUTH_FAILED"
    REFUSED = "REFUSED"
    TIMED_OUT = "TIMED_OUT"
    DISCONNECTED = "DISCONNECTED"
    OTHER = "OTHER"


GUIDANCE = {
    FailureKind.AUTH_FAILED: "Authentication failed. Check username and password.",
    FailureKind.REFUSED: "Connection refused. Ensure SSH is enabled on the modem and the IP address is correct.",
    FailureKind.TIMED_OUT: "Connection timed out. Check if the modem is accessible and the IP address is correct.",
    FailureKind.DISCONNECTED: "Connection reset/disconnected. This might indicate the modem is rebooting.",
}

_AUTH_TEXT = ("authentication failed", "all configured authentication methods failed")
_REFUSED_TEXT = ("connection refused", "econnrefused")
_TIMEOUT_TEXT = ("timed out", "etimedout")
_DISCONNECT_TEXT = ("disconnected", "connection reset", "econnreset")


def _all_refused(exc: NoValidConnectionsError) -> bool:
    errors = list(exc.errors.values())
    return bool(errors) and all(
        isinstance(e, ConnectionRefusedError) or getattr(e, "errno", None) == errno.ECONNREFUSED
        for e in errors
    )


def classify_error(exc: BaseException) -> FailureKind:
    """
    Map a transport error to a FailureKind.
    A SessionDisconnected is always DISCONNECTED; anything else is checked
    in priority order: auth, refused, timeout, disconnect.
    """
    if isinstance(exc, SessionDisconnected):
        return FailureKind.DISCONNECTED

    text = str(exc).lower()

    if isinstance(exc, paramiko.AuthenticationException) or any(t in text for t in _AUTH_TEXT):
        return FailureKind.AUTH_FAILED

    if isinstance(exc, ConnectionRefusedError) or any(t in text for t in _REFUSED_TEXT):
        return FailureKind.REFUSED
    if isinstance(exc, NoValidConnectionsError) and _all_refused(exc):
        return FailureKind.REFUSED

    if isinstance(exc, (TimeoutError, socket.timeout)) or any(t in text for t in _TIMEOUT_TEXT):
        return FailureKind.TIMED_OUT

    if isinstance(exc, (ConnectionResetError, EOFError)):
        return FailureKind.DISCONNECTED
    if any(t in text for t in _DISCONNECT_TEXT):
        return FailureKind.DISCONNECTED

    return FailureKind.OTHER
