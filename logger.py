# logger.py
import logging
import os
import sys

LOG_FILE = os.environ.get("PANGOLIN_INSTALLER_LOG", "/var/log/pangolin_installer.log")
FALLBACK_LOG_FILE = "/tmp/pangolin_installer.log"


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("pangolin_installer")
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    # /var/log is only writable as root
    try:
        fh = logging.FileHandler(LOG_FILE)
    except OSError:
        fh = logging.FileHandler(FALLBACK_LOG_FILE)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(fmt)

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(logging.WARNING)
    sh.setFormatter(fmt)
    sh.set_name("console")

    logger.addHandler(fh)
    logger.addHandler(sh)
    return logger


def set_console_logging(enabled: bool) -> None:
    """Mute the stderr handler while the TUI owns the terminal."""
    for handler in log.handlers:
        if handler.get_name() == "console":
            handler.setLevel(logging.WARNING if enabled else logging.CRITICAL + 1)


log = setup_logger()
