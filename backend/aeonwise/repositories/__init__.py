"""SQLAlchemy repositories for profiles and the points ledger."""

from .points_ledger import PointsLedgerRepository, points_ledger_entries
from .profiles import ProfileNotFoundError, ProfileRepository, profiles

__all__ = [
    "PointsLedgerRepository",
    "ProfileNotFoundError",
    "ProfileRepository",
    "points_ledger_entries",
    "profiles",
]
