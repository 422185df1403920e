"""
Logging configuration for the hostel fee ledger.
Provides structured logging with console, rotating file and JSON handlers.
"""

import os
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from hostel_ledger.config.settings import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with ledger context fields"""

    context_fields = ("student_id", "hostel_id", "fee_id", "transaction_id", "period", "operation")

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = settings.ENVIRONMENT

        for field in self.context_fields:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)

        if record.exc_info:
            log_record['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }


def build_logging_config(log_dir: str = None) -> Dict[str, Any]:
    """Build the dictConfig mapping from current settings"""
    log_dir = log_dir or settings.LOG_DIR
    console_formatter = 'colored' if settings.is_development() else 'standard'
    if settings.LOG_FORMAT == "json":
        console_formatter = 'json'

    handlers: Dict[str, Any] = {
        'console': {
            'level': 'DEBUG' if settings.DEBUG else 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': console_formatter,
        },
    }
    if settings.LOG_TO_FILE:
        handlers.update({
            'file': {
                'level': 'INFO',
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': os.path.join(log_dir, 'ledger.log'),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 10,
                'formatter': 'standard',
                'encoding': 'utf8'
            },
            'error_file': {
                'level': 'ERROR',
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': os.path.join(log_dir, 'error.log'),
                'maxBytes': 10485760,
                'backupCount': 10,
                'formatter': 'standard',
                'encoding': 'utf8'
            },
            'json_file': {
                'level': 'INFO',
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': os.path.join(log_dir, 'ledger.json.log'),
                'maxBytes': 10485760,
                'backupCount': 10,
                'formatter': 'json',
                'encoding': 'utf8'
            },
        })
    handler_names = list(handlers)

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            }
        },
        'handlers': handlers,
        'loggers': {
            '': {
                'handlers': handler_names,
                'level': settings.LOG_LEVEL,
            },
            'hostel_ledger': {
                'handlers': handler_names,
                'level': settings.LOG_LEVEL,
                'propagate': False
            },
            'sqlalchemy.engine': {
                'handlers': ['console'],
                'level': 'WARNING',
                'propagate': False
            },
            'celery': {
                'handlers': handler_names,
                'level': 'INFO',
                'propagate': False
            },
            'uvicorn.access': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False
            }
        }
    }


def setup_logging(log_dir: str = None) -> logging.Logger:
    """Configure application logging"""
    log_dir = log_dir or settings.LOG_DIR
    if settings.LOG_TO_FILE:
        os.makedirs(log_dir, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_dir))
    logger = logging.getLogger("hostel_ledger")
    logger.info(f"Logging initialized with level: {settings.LOG_LEVEL}")
    return logger
