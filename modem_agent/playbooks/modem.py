import time
from typing import Callable, Optional

from modem_agent.config import ModemConfig
from modem_agent.transport.errors import GUIDANCE, FailureKind, classify_error
from modem_agent.transport.ssh import CommandResult, ParamikoShellSession, ShellSession

SessionFactory = Callable[[ModemConfig], ShellSession]


def simulate_reset(log, sleep: Optional[Callable[[float], None]] = None) -> bool:
    """Scripted stand-in for a reboot; no network, always succeeds."""
    sleep = sleep or time.sleep

    log.record("MOCK MODE: Simulating modem reset...")
    sleep(1.0)

    log.record("MOCK MODE: Connection to modem established")
    log.record("MOCK MODE: Sending reboot command")
    sleep(0.5)

    log.record("MOCK MODE: Reboot command accepted")
    log.record("MOCK MODE: Modem is rebooting (simulated)")
    log.record("MOCK MODE: Modem should be back online in 1-2 minutes (simulated)")
    return True


def reset_modem(cfg: ModemConfig, log,
                session_factory: Optional[SessionFactory] = None,
                sleep: Optional[Callable[[float], None]] = None) -> bool:
    """
    Modem reboot playbook.
    Connects over SSH, sends the reboot command and reports True on success.
    A dropped connection is taken as the modem going down for reboot.
    """
    if cfg.simulate:
        return simulate_reset(log, sleep)

    if cfg.missing_fields():
        log.error("Error: Missing required environment variables (MODEM_IP, USERNAME, or PASSWORD)")
        return False

    log.record(f"Attempting to connect to modem at {cfg.host}...")

    session_factory = session_factory or ParamikoShellSession
    with session_factory(cfg) as session:
        try:
            session.connect()
            log.record("SSH connection established, sending reboot command...")

            try:
                result = session.run(
                    cfg.command,
                    on_stdout=lambda chunk: log.record(f"SSH stdout: {chunk}"),
                    on_stderr=lambda chunk: log.record(f"SSH stderr: {chunk}"),
                )
            except Exception as e:
                if classify_error(e) is not FailureKind.DISCONNECTED:
                    raise
                log.record("Connection lost, which is expected during reboot. Modem is likely rebooting.")
                result = CommandResult(exit_status=0)

        except Exception as e:
            kind = classify_error(e)
            if kind is FailureKind.DISCONNECTED:
                log.record(GUIDANCE[kind])
                return True
            log.error(GUIDANCE.get(kind, f"SSH error: {e}"))
            return False

    if result.exit_status in (0, None):
        log.record("Reset command sent successfully. Modem is rebooting...")
        log.record("Modem should be back online in 1-2 minutes.")
        return True

    log.error(f"Command failed with code: {result.exit_status}")
    log.error(f"Stdout: {result.stdout or 'none'}")
    log.error(f"Stderr: {result.stderr or 'none'}")
    return False
