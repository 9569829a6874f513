"""Translate service-layer exceptions into HTTP errors."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from .ledger_models import AwardResult
from .llm_client import LLMError

logger = logging.getLogger(__name__)


@contextmanager
def service_errors(action: str) -> Iterator[None]:
    """Map LookupError to 404, ValueError to 400 and storage/LLM failures to 503."""
    try:
        yield
    except HTTPException:
        raise
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while %s", action)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Points storage is temporarily unavailable.",
        ) from exc
    except LLMError as exc:
        logger.exception("Language model failure while %s", action)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Language model is temporarily unavailable.",
        ) from exc


def require_ledger_entry(award: Optional[AwardResult]) -> None:
    """Raise 503 when an award never reached the ledger. Drifted awards were recorded and pass."""
    if award is not None and not award.success and not award.drift:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Points storage is temporarily unavailable.",
        )


__all__ = ["require_ledger_entry", "service_errors"]
