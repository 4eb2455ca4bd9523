import codecs
import logging
import socket
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import paramiko

from modem_agent.config import ModemConfig
from modem_agent.transport.errors import SessionDisconnected

logger = logging.getLogger(__name__)

OutputCallback = Optional[Callable[[str], None]]

RECV_BYTES = 4096
POLL_SECONDS = 0.1


@dataclass(frozen=True)
class CommandResult:
    exit_status: Optional[int]
    stdout: str = ""
    stderr: str = ""


class ShellSession:
    """
    Interface for a remote shell session.
    Implementations must make close() safe to call more than once.
    """
    def connect(self) -> None:
        raise NotImplementedError

    def run(self, command: str, on_stdout: OutputCallback = None,
            on_stderr: OutputCallback = None) -> CommandResult:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class ParamikoShellSession(ShellSession):
    def __init__(self, config: ModemConfig):
        self.config = config
        self._sock: Optional[socket.socket] = None
        self._transport: Optional[paramiko.Transport] = None
        self._closed = False

    def connect(self) -> None:
        cfg = self.config
        timeout = cfg.connect_timeout

        self._sock = socket.create_connection((cfg.host, cfg.port), timeout=timeout)
        transport = paramiko.Transport(self._sock)
        transport.banner_timeout = timeout
        transport.auth_timeout = timeout
        self._transport = transport

        transport.start_client(timeout=timeout)
        transport.set_keepalive(cfg.keepalive_interval)
        self._authenticate(transport)

    def _authenticate(self, transport: paramiko.Transport):
        try:
            transport.auth_password(self.config.username, self.config.password, fallback=False)
        except paramiko.BadAuthenticationType as e:
            if "keyboard-interactive" not in e.allowed_types:
                raise
            logger.debug("password auth rejected, trying keyboard-interactive")
            transport.auth_interactive(self.config.username, self.answer_prompts)

        if not transport.is_authenticated():
            raise paramiko.AuthenticationException("Authentication failed.")

    def answer_prompts(self, title: str, instructions: str, prompt_list) -> List[str]:
        """Answer password prompts with the configured password; leave others blank."""
        answers = []
        for prompt, _echo in prompt_list:
            if "password" in prompt.lower():
                answers.append(self.config.password)
            else:
                logger.debug(f"not answering interactive prompt: {prompt!r}")
                answers.append("")
        return answers

    def run(self, command: str, on_stdout: OutputCallback = None,
            on_stderr: OutputCallback = None) -> CommandResult:
        transport = self._transport
        if transport is None or self._closed:
            raise paramiko.SSHException("SSH session is not connected")

        try:
            channel = transport.open_session(timeout=self.config.connect_timeout)
            channel.exec_command(command)
        except (paramiko.SSHException, EOFError, OSError) as e:
            if not transport.is_active():
                raise SessionDisconnected() from e
            raise

        stdout = _Stream(on_stdout)
        stderr = _Stream(on_stderr)

        # No overall deadline: the command either finishes or the link drops.
        while True:
            got_data = False
            if channel.recv_ready():
                got_data |= stdout.feed(channel.recv(RECV_BYTES))
            if channel.recv_stderr_ready():
                got_data |= stderr.feed(channel.recv_stderr(RECV_BYTES))
            if got_data:
                continue

            if channel.exit_status_ready():
                break
            if not transport.is_active():
                raise SessionDisconnected()
            if channel.closed:
                break
            time.sleep(POLL_SECONDS)

        status = channel.recv_exit_status() if channel.exit_status_ready() else -1
        channel.close()

        return CommandResult(
            exit_status=None if status == -1 else status,
            stdout=stdout.finish(),
            stderr=stderr.finish(),
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._transport is not None:
            self._transport.close()
        elif self._sock is not None:
            self._sock.close()


class _Stream:
    """UTF-8 decodes one output stream; a character split across chunks is kept whole."""

    def __init__(self, callback: OutputCallback):
        self.callback = callback
        self.decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.parts: List[str] = []

    def feed(self, chunk: bytes) -> bool:
        if not chunk:
            return False
        self._emit(self.decoder.decode(chunk))
        return True

    def finish(self) -> str:
        self._emit(self.decoder.decode(b"", final=True))
        return "".join(self.parts)

    def _emit(self, text: str):
        if not text:
            return
        self.parts.append(text)
        if self.callback:
            self.callback(text)
