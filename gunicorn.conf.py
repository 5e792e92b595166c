import logging.config
import multiprocessing
import re

import structlog

from config.env import env

# Signing holds a whole PDF in memory while stamping; keep the pool small
workers = env.int("GUNICORN_WORKERS", default=min(multiprocessing.cpu_count() * 2 + 1, 8))
worker_class = "sync"
preload_app = True

timeout = 90
graceful_timeout = 30
keepalive = 5
max_requests = 1000
max_requests_jitter = 50

loglevel = "info"
errorlog = "-"
accesslog = "-"

# 10.0.0.1 - - [19/Oct/2026:09:12:03 +0000] "POST /api/documents/verify HTTP/1.1" 200 512 "-" "curl/8.0" 0.041
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(L)s'

ACCESS_LINE = re.compile(
    r'(?P<remote>\S+) \S+ (?P<user>\S+) \[(?P<time>[^\]]+)\] "(?P<request>[^"]*)" '
    r'(?P<status>\d{3}) (?P<size>\S+) "(?P<referer>[^"]*)" "(?P<agent>[^"]*)" (?P<duration>[\d.]+)\s*\Z'
)


def _int_or_zero(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def access_fields(logger, name, event_dict):
    """Split gunicorn access lines into logfmt fields; unknown shapes pass through untouched."""
    if event_dict.get("logger") != "gunicorn.access":
        return event_dict

    m = ACCESS_LINE.match(event_dict.get("event", ""))
    if not m:
        return event_dict

    fields = m.groupdict()
    method, _, rest = fields.pop("request").partition(" ")
    path = rest.rsplit(" ", 1)[0] if rest else ""
    event_dict.update(
        event="http.request",
        remote=fields["remote"],
        user=None if fields["user"] == "-" else fields["user"],
        method=method,
        path=path,
        status=int(fields["status"]),
        size=_int_or_zero(fields["size"]),
        referer=None if fields["referer"] == "-" else fields["referer"],
        agent=fields["agent"],
        duration_s=float(fields["duration"]),
    )
    return event_dict


def server_events(logger, name, event_dict):
    if event_dict.get("logger") != "gunicorn.error":
        return event_dict
    raw = event_dict.get("event")
    if isinstance(raw, str):
        event_dict["message"] = raw
        lowered = raw.lower()
        if lowered.startswith(("starting", "listening", "using", "booting")):
            event_dict["event"] = "gunicorn.booting"
        elif lowered.startswith("handling signal"):
            event_dict["event"] = "gunicorn.signal"
    return event_dict


pre_chain = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    access_fields,
    server_events,
]

logconfig_dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "root": {"level": "INFO", "handlers": ["default"]},
    "loggers": {
        "gunicorn.error": {"level": "INFO", "handlers": ["default"], "propagate": False, "qualname": "gunicorn.error"},
        "gunicorn.access": {"level": "INFO", "handlers": ["default"], "propagate": False, "qualname": "gunicorn.access"},
    },
    "handlers": {
        "default": {"class": "logging.StreamHandler", "formatter": "logfmt"},
    },
    "formatters": {
        "logfmt": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.LogfmtRenderer(),
            "foreign_pre_chain": pre_chain,
        }
    },
}

logging.config.dictConfig(logconfig_dict)
