# tcg_repricer/config/logging_config.py

"""Audit log for one repricing run.

A run writes ``logs/run_<YYYYmmdd_HHMMSS>.log`` holding, in order: the
catalog pages fetched from the commerce platform, the backup file path,
then for each product the TCGplayer search, the matched title and the
price decision per tracked variant (old and new amount, or why it was
skipped), and the status of every price write. Re-reading that file
is how a run is audited after the fact; the workflow keeps only the
backup as an artifact.

Only warnings and errors reach stderr, where they interleave with the
rich progress lines printed by ``tcg_repricer.cli.runner``.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from tcg_repricer.config.settings import Settings

# Reusable format strings --------------------------------------------------

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Initialise the root ``tcg_repricer`` logger for the current run.

    Returns:
        The :class:`~pathlib.Path` to the log file created for this run.
    """
    logs_dir = logs_dir or Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"run_{timestamp}.log"

    # --- Root project logger -----------------------------------------------
    root_logger = logging.getLogger("tcg_repricer")
    root_logger.setLevel(logging.DEBUG)

    # Prevent duplicate handlers on repeated calls (e.g. tests)
    if root_logger.handlers:
        return log_file

    # --- File handler (DEBUG+) – captures everything -----------------------
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    # --- Console handler (WARNING+) – only important messages --------------
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info("Logging initialised, log file: %s", log_file)

    return log_file
