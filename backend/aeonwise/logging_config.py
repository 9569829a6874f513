"""Process logging for the AeonWise API and its maintenance scripts.

``AEONWISE_LOG_LEVEL`` sets the root level. Points awards, drift and
reconciliation are logged by ``aeonwise.points_ledger`` and
``aeonwise.telemetry``; ``AEONWISE_LEDGER_LOG_LEVEL`` tunes both without
raising the noise of the rest of the process. SQL statement logging stays at
WARNING unless ``AEONWISE_LOG_SQL=1``, and ``AEONWISE_DEBUG_HTTP=1`` opens up
the OpenAI and httpx client loggers.
"""

import logging
import os
from logging.config import dictConfig
from typing import Any, Dict, Mapping, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LEDGER_LOGGERS = ("aeonwise.points_ledger", "aeonwise.telemetry", "aeonwise.telemetry_pipeline")
HTTP_CLIENT_LOGGERS = ("httpx", "openai")


def _flag(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "0").strip().lower() in {"1", "true", "yes"}


def build_logging_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    level = env.get("AEONWISE_LOG_LEVEL", "INFO").upper()
    ledger_level = env.get("AEONWISE_LEDGER_LOG_LEVEL", level).upper()
    http_level = "DEBUG" if _flag(env, "AEONWISE_DEBUG_HTTP") else "WARNING"

    loggers: Dict[str, Dict[str, Any]] = {name: {"level": ledger_level} for name in LEDGER_LOGGERS}
    loggers.update({name: {"level": http_level} for name in HTTP_CLIENT_LOGGERS})
    loggers["sqlalchemy.engine"] = {"level": "INFO" if _flag(env, "AEONWISE_LOG_SQL") else "WARNING"}
    if http_level == "DEBUG":
        loggers["uvicorn.access"] = {"level": "DEBUG"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": DEFAULT_LOG_FORMAT,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": loggers,
        "root": {
            "handlers": ["default"],
            "level": level,
        },
    }


def configure_logging(environ: Optional[Mapping[str, str]] = None) -> None:
    dictConfig(build_logging_config(environ))
    logging.getLogger(__name__).debug("Logging configured")
