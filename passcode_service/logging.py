import logging
import sys
import time

from pythonjsonlogger.json import JsonFormatter


class UTCJsonFormatter(JsonFormatter):
    converter = time.gmtime


def setup_logging(
    level: str = "INFO", *, service: str = "passcode-service", env: str = "dev"
) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    handler.setFormatter(
        UTCJsonFormatter(fmt, static_fields={"service": service, "env": env})
    )
    root.addHandler(handler)

    # keyword mirrors are polled; per-request httpx lines are noise
    logging.getLogger("httpx").setLevel("WARNING")
    logging.getLogger("uvicorn.access").setLevel(level.upper())
