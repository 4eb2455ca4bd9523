import logging
import sys
from typing import Mapping, Optional

from modem_agent.config import ConfigError, load_config, load_env_file
from modem_agent.log import get_logger
from modem_agent.playbooks.modem import reset_modem

logger = logging.getLogger(__name__)


def main(environ: Optional[Mapping[str, str]] = None) -> int:
    if environ is None:
        load_env_file()

    try:
        cfg = load_config(environ)
    except ConfigError as e:
        logging.basicConfig(format="%(levelname)s: %(message)s")
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        log = get_logger(cfg)
    except OSError as e:
        logging.basicConfig(format="%(levelname)s: %(message)s")
        logger.error(f"Cannot open log file {cfg.log_file}: {e}")
        return 1

    try:
        success = reset_modem(cfg, log)
    except Exception as e:
        log.error(f"Unhandled error: {e}")
        return 1
    finally:
        log.close()

    return 0 if success else 1


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
