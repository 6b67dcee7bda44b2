"""
Memory Insights Logging System

Colored console logging plus request loggers for providers and the fallback cascade
"""
import logging
import sys
import time
from typing import Any, Dict, List, Optional
from datetime import datetime
from pathlib import Path
from contextlib import contextmanager

from app.config import settings


class LogColors:
    """Terminal colors"""
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'

    @staticmethod
    def green(msg: str) -> str:
        return f"{LogColors.OKGREEN}{msg}{LogColors.ENDC}"

    @staticmethod
    def yellow(msg: str) -> str:
        return f"{LogColors.WARNING}{msg}{LogColors.ENDC}"

    @staticmethod
    def red(msg: str) -> str:
        return f"{LogColors.FAIL}{msg}{LogColors.ENDC}"

    @staticmethod
    def bold(msg: str) -> str:
        return f"{LogColors.BOLD}{msg}{LogColors.ENDC}"


class InsightsFormatter(logging.Formatter):
    """Console/file formatter with optional colors"""

    LEVEL_COLORS = {
        logging.DEBUG: LogColors.OKBLUE,
        logging.INFO: LogColors.OKGREEN,
        logging.WARNING: LogColors.WARNING,
        logging.ERROR: LogColors.FAIL,
        logging.CRITICAL: LogColors.FAIL,
    }

    def __init__(self, use_color: bool = True, show_detail: bool = True):
        super().__init__()
        self.use_color = use_color
        self.show_detail = show_detail

    def format(self, record: logging.LogRecord) -> str:
        level_name = record.levelname
        logger_name = record.name

        if self.use_color:
            color = self.LEVEL_COLORS.get(record.levelno, "")
            level_name = f"{color}{level_name}{LogColors.ENDC}"
            logger_name = f"{LogColors.OKCYAN}{logger_name}{LogColors.ENDC}"

        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        if self.show_detail:
            base_msg = f"[{timestamp}] {level_name:8} {logger_name:20} | {record.getMessage()}"
        else:
            base_msg = f"[{timestamp}] {level_name:8} | {record.getMessage()}"

        if record.exc_info:
            base_msg += f"\n{self.formatException(record.exc_info)}"

        return base_msg


class ProviderRequestLogger:
    """Request/response logger for text-generation providers"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.request_count = 0

    def log_request(
        self,
        provider: str,
        model: str,
        messages: List[Dict[str, Any]],
        max_tokens: Optional[int] = None,
        attempt: int = 1
    ) -> int:
        """Log an outgoing chat completion request"""
        self.request_count += 1
        request_id = self.request_count

        self.logger.info(f"{LogColors.bold(provider)} request #{request_id} (attempt {attempt}) → {model}")
        if max_tokens:
            self.logger.debug(f"  Max Tokens: {max_tokens}")
        for i, msg in enumerate(messages):
            content = msg.get("content", "")
            if len(content) > 200:
                content = content[:200] + "..."
            self.logger.debug(f"    [{i}] {msg.get('role', 'unknown')}: {content}")

        return request_id

    def log_response(
        self,
        request_id: int,
        content: str,
        usage: Dict[str, Any],
        duration: float
    ):
        """Log a successful response"""
        self.logger.info(f"{LogColors.green('SUCCESS')} | Duration: {duration:.2f}s | Request #{request_id}")
        if usage:
            self.logger.debug(
                f"  Tokens: {usage.get('prompt_tokens', 0)} + "
                f"{usage.get('completion_tokens', 0)} = {usage.get('total_tokens', 0)}"
            )
        if content:
            preview = content[:200] + "..." if len(content) > 200 else content
            self.logger.debug(f"  Content: {preview}")

    def log_error(self, request_id: int, error: Exception):
        """Log a failed request"""
        self.logger.error(f"Request #{request_id} {LogColors.red('FAILED')}: {error}")


class CascadeLogger:
    """Logs the provider fallback cascade"""

    def __init__(self):
        self.logger = logging.getLogger("cascade")

    def log_start(self, operation: str, entry_count: int):
        self.logger.info(f"{LogColors.bold(operation.upper())} insight for entry #{entry_count}")

    def log_attempt(self, provider: str):
        self.logger.info(f"  Trying {provider}...")

    def log_skip(self, provider: str, reason: str):
        self.logger.info(f"  {LogColors.yellow('SKIP')} {provider}: {reason}")

    def log_failure(self, provider: str, error: Exception):
        self.logger.warning(f"  {LogColors.red('FAILED')} {provider}: {error}")

    def log_success(self, provider: str, word_count: int):
        self.logger.info(f"  {LogColors.green('OK')} {provider} ({word_count} words)")

    def log_exhausted(self, reasons: List[str]):
        self.logger.error(f"  All providers failed: {'; '.join(reasons)}")


provider_logger = ProviderRequestLogger(logging.getLogger("providers"))
cascade_logger = CascadeLogger()


@contextmanager
def log_duration(logger: logging.Logger, operation: str):
    """Log how long a block took"""
    start_time = time.time()
    logger.debug(f"{operation}...")
    try:
        yield
    finally:
        duration = time.time() - start_time
        logger.debug(f"{operation} completed in {duration:.2f}s")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    show_detail: bool = True
):
    """
    Configure root logging

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        show_detail: Include logger names in console output
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(InsightsFormatter(use_color=True, show_detail=show_detail))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(InsightsFormatter(use_color=False, show_detail=True))
        root_logger.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    root_logger.info(f"{LogColors.bold('Memory Insights Logging Initialized')}")
    root_logger.info(f"  Level: {level}")
    if log_file:
        root_logger.info(f"  Log File: {log_file}")


def init_logging():
    """Initialize logging from settings"""
    level = "DEBUG" if settings.debug else settings.log_level.upper()

    # Production writes to a log file as well
    log_file = None if settings.debug else settings.log_file

    setup_logging(level=level, log_file=log_file, show_detail=settings.debug)
