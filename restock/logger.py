import logging
import sys
from logging.handlers import RotatingFileHandler
from . import settings

CONSOLE_FORMAT = "%(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Handler names mark what setup_logger installed, so a DiagnosticLog attached
# to the same logger doesn't count as "already configured".
CONSOLE_HANDLER_NAME = "restock.console"
FILE_HANDLER_NAME = "restock.file"


def _console_handler(level) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(CONSOLE_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(level) -> logging.Handler:
    settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        settings.LOG_DIR / settings.LOG_FILENAME,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.set_name(FILE_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logger(name: str = "restock", log_level: int | str | None = None) -> logging.Logger:
    """
    Configures the `restock` logger tree: message-only console output plus a
    rotating file at LOG_DIR/LOG_FILENAME. Module loggers such as
    `restock.aggregator` propagate here, so this runs once per process.
    """
    level = log_level or settings.LOG_LEVEL
    logger = logging.getLogger(name)
    logger.setLevel(level)

    installed = {h.get_name() for h in logger.handlers}
    if CONSOLE_HANDLER_NAME not in installed:
        logger.addHandler(_console_handler(level))
    if FILE_HANDLER_NAME not in installed:
        logger.addHandler(_file_handler(level))

    return logger


class DiagnosticLog(logging.Handler):
    """
    Append-only, human-readable event log kept in memory.
    One line per validation or pipeline event; this is what a front end
    shows in its log box.

    Use `attach`/`detach`, or as a context manager around the work to capture.
    """

    def __init__(self, level: int = logging.INFO, logger_name: str = "restock"):
        super().__init__(level)
        self.setFormatter(logging.Formatter("%(message)s"))
        self.logger_name = logger_name
        self._lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self._lines.append(self.format(record))

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def text(self) -> str:
        return "".join(f"{line}\n" for line in self._lines)

    def attach(self, logger_name: str | None = None) -> "DiagnosticLog":
        """Starts capturing events emitted under `logger_name`."""
        target = logging.getLogger(logger_name or self.logger_name)
        if target.level == logging.NOTSET or target.level > self.level:
            target.setLevel(self.level)
        target.addHandler(self)
        return self

    def detach(self, logger_name: str | None = None) -> None:
        logging.getLogger(logger_name or self.logger_name).removeHandler(self)

    def __enter__(self) -> "DiagnosticLog":
        return self.attach()

    def __exit__(self, *exc_info) -> None:
        self.detach()
