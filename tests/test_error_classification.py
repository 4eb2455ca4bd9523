import errno
import socket

import paramiko
import pytest
from paramiko.ssh_exception import NoValidConnectionsError

from modem_agent.transport.errors import FailureKind, SessionDisconnected, classify_error


@pytest.mark.parametrize("exc, expected", [
    (paramiko.AuthenticationException("Authentication failed."), FailureKind.AUTH_FAILED),
    (paramiko.BadAuthenticationType("Bad authentication type", ["publickey"]), FailureKind.AUTH_FAILED),
    (Exception("All configured authentication methods failed"), FailureKind.AUTH_FAILED),
    (ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused"), FailureKind.REFUSED),
    (OSError("connect ECONNREFUSED 192.168.100.1:22"), FailureKind.REFUSED),
    (socket.timeout("timed out"), FailureKind.TIMED_OUT),
    (TimeoutError(), FailureKind.TIMED_OUT),
    (OSError("connect ETIMEDOUT 192.168.100.1:22"), FailureKind.TIMED_OUT),
    (SessionDisconnected(), FailureKind.DISCONNECTED),
    (ConnectionResetError(errno.ECONNRESET, "Connection reset by peer"), FailureKind.DISCONNECTED),
    (EOFError(), FailureKind.DISCONNECTED),
    (paramiko.SSHException("Remote host disconnected"), FailureKind.DISCONNECTED),
    (paramiko.SSHException("No existing session"), FailureKind.OTHER),
    (ValueError("something odd"), FailureKind.OTHER),
])
def test_classify_error(exc, expected):
    assert classify_error(exc) is expected


def test_auth_wins_over_disconnect_text():
    exc = paramiko.AuthenticationException("Authentication failed; peer disconnected")
    assert classify_error(exc) is FailureKind.AUTH_FAILED


def test_refused_wins_over_timeout_text():
    assert classify_error(OSError("connection refused after it timed out")) is FailureKind.REFUSED


def test_no_valid_connections_all_refused():
    exc = NoValidConnectionsError({
        ("192.168.100.1", 22): ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused"),
    })
    assert classify_error(exc) is FailureKind.REFUSED


def test_no_valid_connections_mixed_errors_is_other():
    exc = NoValidConnectionsError({
        ("192.168.100.1", 22): ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused"),
        ("fe80::1", 22, 0, 0): OSError(errno.EHOSTUNREACH, "No route to host"),
    })
    assert classify_error(exc) is FailureKind.OTHER


def test_failure_kind_is_string_valued():
    assert FailureKind("DISCONNECTED") is FailureKind.DISCONNECTED
    assert FailureKind.REFUSED == "REFUSED"


@pytest.mark.parametrize("message", [
    "remote host disconnected: timed out",
    "Authentication failed",
    "connection refused",
])
def test_session_disconnected_wins_over_message_text(message):
    assert classify_error(SessionDisconnected(message)) is FailureKind.DISCONNECTED
