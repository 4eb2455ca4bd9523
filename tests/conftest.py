import pytest

from modem_agent.config import ModemConfig
from modem_agent.transport.ssh import CommandResult, ShellSession


class RecordingLog:
    """Stands in for ResetLogger; keeps every line in memory."""

    def __init__(self):
        self.lines = []
        self.errors = []

    def record(self, message):
        self.lines.append(message)

    def error(self, message):
        self.lines.append(message)
        self.errors.append(message)

    def text(self):
        return "\n".join(self.lines)


class FakeSession(ShellSession):
    def __init__(self, cfg, connect_error=None, run_error=None,
                 result=None, stdout=(), stderr=()):
        self.cfg = cfg
        self.connect_error = connect_error
        self.run_error = run_error
        self.result = result if result is not None else CommandResult(exit_status=0)
        self.stdout = list(stdout)
        self.stderr = list(stderr)
        self.connected = False
        self.commands = []
        self.close_calls = 0

    def connect(self):
        if self.connect_error:
            raise self.connect_error
        self.connected = True

    def run(self, command, on_stdout=None, on_stderr=None):
        self.commands.append(command)
        for chunk in self.stdout:
            on_stdout(chunk)
        for chunk in self.stderr:
            on_stderr(chunk)
        if self.run_error:
            raise self.run_error
        return self.result

    def close(self):
        self.close_calls += 1


class SessionFactory:
    """Callable used as session_factory; remembers each session it built."""

    def __init__(self, **session_kwargs):
        self.session_kwargs = session_kwargs
        self.sessions = []

    def __call__(self, cfg):
        session = FakeSession(cfg, **self.session_kwargs)
        self.sessions.append(session)
        return session

    @property
    def session(self):
        assert len(self.sessions) == 1
        return self.sessions[0]


@pytest.fixture
def log():
    return RecordingLog()


@pytest.fixture
def cfg(tmp_path):
    return ModemConfig(
        host="192.168.100.1",
        username="admin",
        password="secret",
        log_file=tmp_path / "modem_reset.log",
    )
