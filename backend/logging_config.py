"""
Logging setup for the CachedInfo API.
Plain text in development, one JSON object per line in production.
"""

import json
import logging
import sys
import traceback
import uuid
from datetime import datetime, timezone

from flask import g, has_request_context, request

_RESERVED = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname', 'levelno',
    'lineno', 'module', 'msecs', 'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName', 'message', 'taskName',
    'request_id', 'user_id',
}


def generate_request_id():
    return str(uuid.uuid4())[:8]


def _request_context():
    if not has_request_context():
        return '-', '-'
    return getattr(g, 'request_id', '-'), str(getattr(g, 'user_id', '-') or '-')


class RequestContextFilter(logging.Filter):
    """Attach the current request id and user id to every record"""

    def filter(self, record):
        record.request_id, record.user_id = _request_context()
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if getattr(record, 'request_id', '-') != '-':
            log_data["request_id"] = record.request_id
        if getattr(record, 'user_id', '-') != '-':
            log_data["user_id"] = record.user_id
        if record.exc_info and record.exc_info[0]:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith('_'):
                log_data[key] = value
        return json.dumps(log_data, default=str)


def setup_logging(level="INFO", env="development"):
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in list(root.handlers):
        if getattr(handler, '_cachedinfo', False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler._cachedinfo = True
    handler.addFilter(RequestContextFilter())
    if env == "production":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"))
    root.addHandler(handler)

    # werkzeug prints its own access line in development
    logging.getLogger("werkzeug").setLevel(logging.WARNING if env == "production" else logging.INFO)


def install_request_logging(app):
    """Tag each request with an id and log method, path, status and duration"""
    logger = logging.getLogger("cachedinfo.http")

    @app.before_request
    def _start_request():
        g.request_id = request.headers.get('X-Request-ID') or generate_request_id()
        g.request_started = datetime.now(timezone.utc)

    @app.after_request
    def _finish_request(response):
        started = getattr(g, 'request_started', None)
        duration_ms = (datetime.now(timezone.utc) - started).total_seconds() * 1000 if started else 0.0
        response.headers['X-Request-ID'] = getattr(g, 'request_id', '')
        logger.info("%s %s -> %s (%.1fms)", request.method, request.path, response.status_code, duration_ms,
                    extra={"http_method": request.method, "http_path": request.path,
                           "http_status": response.status_code, "duration_ms": round(duration_ms, 2)})
        return response
