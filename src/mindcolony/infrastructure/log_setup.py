import logging
import sys
from pathlib import Path

from ulid import ULID

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"

_VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def level_for(verbose: int) -> int:
    return _VERBOSITY_LEVELS.get(verbose, logging.DEBUG if verbose > 1 else logging.WARNING)


def setup_logging(log_dir: Path, verbose: int = 1) -> tuple[logging.Logger, Path | None, str]:
    """
    Configure the `mindcolony` logger for one run.

    Console output goes to stderr at the level picked by `verbose`; a
    per-run file in `log_dir` always records DEBUG. If the log directory
    cannot be created, file logging is skipped.

    Returns:
        (logger, log file path or None, run id)
    """
    run_id = str(ULID())
    logger = logging.getLogger("mindcolony")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level_for(verbose))
    console.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))
    logger.addHandler(console)

    log_path: Path | None = None
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / f"run_{run_id}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"File logging disabled ({log_dir}): {e}")
        log_path = None

    logger.debug(f"Run {run_id} logging to {log_path}")
    return logger, log_path, run_id
