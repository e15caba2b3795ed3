"""
Log formatters and the secret redaction filter.
"""

import json
import logging
import re
from datetime import datetime
from typing import Dict, Any, Optional


class SecretRedactingFilter(logging.Filter):
    """
    Masks credentials that would otherwise end up in log output.

    Authorization header values (``Basic ...`` / ``Bearer ...``) and
    ``password`` / ``access_token`` / ``client_secret`` assignments are
    replaced before the record reaches any handler.
    """

    MASK = "********"

    PATTERNS = [
        re.compile(r"(\b(?:Basic|Bearer)\s+)[A-Za-z0-9\-._~+/]+=*"),
        re.compile(r"""(["']?(?:password|access_token|refresh_token|client_secret|credential)["']?\s*[:=]\s*["']?)[^"'\s,}&]+""", re.IGNORECASE),
    ]

    def redact(self, text: str) -> str:
        for pattern in self.PATTERNS:
            text = pattern.sub(rf"\g<1>{self.MASK}", text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class StructuredFormatter(logging.Formatter):
    """
    Structured JSON formatter for machine-readable logs.

    Each record becomes one JSON object per line.
    """

    STANDARD_FIELDS = {
        'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
        'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
        'thread', 'threadName', 'processName', 'process', 'getMessage',
        'exc_info', 'exc_text', 'stack_info', 'message', 'taskName'
    }

    def __init__(self, include_extra: bool = True):
        """
        Initialize structured formatter.

        Args:
            include_extra: Whether to include extra fields from log records
        """
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            extra = {
                key: value for key, value in record.__dict__.items()
                if key not in self.STANDARD_FIELDS and not key.startswith('_')
            }
            if extra:
                log_entry["extra"] = extra

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ColoredFormatter(logging.Formatter):
    """
    Colored formatter for terminal output with ANSI color codes.
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m',
        'BOLD': '\033[1m'
    }

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None):
        super().__init__(fmt, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        level_color = self.COLORS.get(record.levelname, '')
        if not level_color:
            return formatted

        reset_color = self.COLORS['RESET']
        bold_level = f"{self.COLORS['BOLD']}{record.levelname}{reset_color}{level_color}"
        formatted = formatted.replace(record.levelname, bold_level, 1)
        return f"{level_color}{formatted}{reset_color}"
