import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from course_scheduler.config import settings

FMT = "%(asctime)s | %(levelname)s | %(name)s | %(threadName)s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

# chatty under lease retries and per-request sessions
LIBRARY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "redis")

CONSOLE_HANDLER = "course_scheduler.console"
FILE_HANDLER = "course_scheduler.file"


def setup_logging(level=None, log_dir=None, to_file=None):
    """
    - Console, plus rotating file <LOG_DIR>/app.log when LOG_TO_FILE
    - Thread name in every line: lease waits run in FastAPI's threadpool
    - Library loggers pinned to LIBRARY_LOG_LEVEL
    Arguments override the matching settings.
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_dir = log_dir or settings.LOG_DIR
    to_file = settings.LOG_TO_FILE if to_file is None else to_file

    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(settings.LIBRARY_LOG_LEVEL.upper())

    root = logging.getLogger()
    root.setLevel(level)

    # Prevent duplicate handlers; other handlers (pytest, uvicorn) may already be attached
    if any(h.get_name() == CONSOLE_HANDLER for h in root.handlers):
        return

    formatter = logging.Formatter(fmt=FMT, datefmt=DATEFMT)

    console = logging.StreamHandler()
    console.set_name(CONSOLE_HANDLER)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    if not to_file:
        return

    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        path / "app.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.set_name(FILE_HANDLER)
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
