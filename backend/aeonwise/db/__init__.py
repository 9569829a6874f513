"""Database utilities for AeonWise."""

from .session import (
    SessionFactory,
    build_session_factory,
    dispose_engine,
    get_engine,
    get_session_factory,
    session_scope,
)

__all__ = [
    "SessionFactory",
    "build_session_factory",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "session_scope",
]
