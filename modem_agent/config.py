import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

CONFIG_PATH = "config/modem_agent.local.yaml"
LOG_FILE_NAME = "modem_reset.log"
PROJECT_ROOT = Path(__file__).resolve().parent.parent

REQUIRED_ENV = ("MODEM_IP", "USERNAME", "PASSWORD")


def default_log_file() -> Path:
    """
    Log next to the project in a source checkout, otherwise in the
    working directory (an installed package lives in site-packages).
    """
    if (PROJECT_ROOT / "pyproject.toml").exists():
        return PROJECT_ROOT / LOG_FILE_NAME
    return Path.cwd() / LOG_FILE_NAME


class ConfigError(Exception):
    """Configuration file could not be loaded"""
    pass


@dataclass(frozen=True)
class ModemConfig:
    host: str
    username: str
    password: str
    simulate: bool = False
    port: int = 22
    command: str = "reboot"
    connect_timeout: float = 30.0
    keepalive_interval: int = 1
    log_file: Path = field(default_factory=default_log_file)

    def missing_fields(self) -> List[str]:
        values = dict(zip(REQUIRED_ENV, (self.host, self.username, self.password)))
        return [name for name, value in values.items() if not value]


def load_env_file(path: Optional[str] = None) -> bool:
    """Load a .env file (default: found from the working directory); variables already set win."""
    return load_dotenv(dotenv_path=path or find_dotenv(usecwd=True), override=False)


def load_yaml(config_path: Optional[str], required: bool = False) -> dict:
    if not config_path:
        return {}

    path = Path(config_path)
    if not path.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")
    return data


def load_config(environ: Optional[Mapping[str, str]] = None,
                config_path: Optional[str] = None) -> ModemConfig:
    """
    Build the run configuration.
    Credentials and the mode flag come from the environment; tunables come
    from the optional YAML file (MODEM_AGENT_CONFIG or CONFIG_PATH).
    """
    env = os.environ if environ is None else environ

    explicit = config_path or env.get("MODEM_AGENT_CONFIG")
    cfg = load_yaml(explicit or CONFIG_PATH, required=bool(explicit))

    modem = cfg.get("modem", {}) or {}
    ssh = cfg.get("ssh", {}) or {}
    log_cfg = cfg.get("logging", {}) or {}

    try:
        return ModemConfig(
            host=env.get("MODEM_IP", ""),
            username=env.get("USERNAME", ""),
            password=env.get("PASSWORD", ""),
            simulate=env.get("MOCK_MODEM") == "true",
            port=int(modem.get("port", 22)),
            command=str(modem.get("command", "reboot")),
            connect_timeout=float(ssh.get("connect_timeout_seconds", 30)),
            keepalive_interval=int(ssh.get("keepalive_interval_seconds", 1)),
            log_file=Path(log_cfg["file"]) if log_cfg.get("file") else default_log_file(),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}") from e
