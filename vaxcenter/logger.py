import logging
import json
import os
from pathlib import Path
import threading


ROOT_LOGGER_NAME = "vaxcenter"

# LogRecord attributes passed through `extra=` that are emitted when present
EXTRA_FIELDS = ("alert", "event")


class SingletonLogger:
    """
    Singleton that configures the ``vaxcenter`` logger hierarchy exactly once per process.
    """
    _instance = None
    _lock = threading.Lock()
    _logger = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SingletonLogger, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            with self._lock:
                if not self._initialized:
                    self._logger = None
                    self._initialized = True

    def get_logger(self, name: str = ROOT_LOGGER_NAME) -> logging.Logger:
        """
        Get a logger inside the configured hierarchy.

        Args:
            name (str): Dotted logger name. Names outside the ``vaxcenter``
                hierarchy are nested under it.

        Returns:
            logging.Logger: Logger whose records propagate to the configured root
        """
        if self._logger is None:
            with self._lock:
                if self._logger is None:
                    self._logger = self._create_logger()
        if name == ROOT_LOGGER_NAME:
            return self._logger
        if not name.startswith(ROOT_LOGGER_NAME + "."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(name)

    def _create_logger(self) -> logging.Logger:
        """
        Create the root application logger with file and console handlers.

        The log directory comes from ``VAXCENTER_LOG_DIR`` (default ``logs``);
        an empty value disables the file handlers.
        """
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        logger.handlers.clear()

        formatter = JsonFormatter({
            "timestamp": "asctime",
            "level": "levelname",
            "logger": "name",
            "module": "module",
            "function": "funcName",
            "line": "lineno",
            "message": "message"
        })

        logs_dir = os.environ.get("VAXCENTER_LOG_DIR", "logs")
        if logs_dir:
            logs_path = Path(logs_dir)
            logs_path.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(logs_path / "vaxcenter.log", mode='a', encoding='utf-8')
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

            error_file_handler = logging.FileHandler(logs_path / "errors.log", mode='a', encoding='utf-8')
            error_file_handler.setLevel(logging.ERROR)
            error_file_handler.setFormatter(formatter)
            logger.addHandler(error_file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, os.environ.get("LOG_LEVEL", "DEBUG").upper(), logging.DEBUG))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        return logger


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    ``fields`` maps output keys to LogRecord attributes. Records carrying
    ``alert`` or ``event`` through ``extra=`` get those keys too, so alerting
    can match on them without parsing the message.
    """
    def __init__(self, fields: dict = None, datefmt: str = "%Y-%m-%dT%H:%M:%S"):
        super().__init__(datefmt=datefmt)
        self.fields = fields if fields is not None else {"message": "message"}

    def usesTime(self) -> bool:
        return "asctime" in self.fields.values()

    def format(self, record) -> str:
        record.message = record.getMessage()
        if self.usesTime():
            record.asctime = self.formatTime(record, self.datefmt)

        entry = {key: getattr(record, attribute) for key, attribute in self.fields.items()}
        entry.update({field: getattr(record, field) for field in EXTRA_FIELDS if hasattr(record, field)})

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exc_info"] = record.exc_text
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger from the singleton-configured hierarchy.

    Args:
        name (str): Logger name, e.g. ``vaxcenter.stock.ledger``

    Returns:
        logging.Logger: Logger instance
    """
    return SingletonLogger().get_logger(name)
