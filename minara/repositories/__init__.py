"""
Repository Layer Package.

Data-access abstractions over Supabase (``profiles``,
``instructor_applications``) and the local SQLite ledger.  Services never
touch ``db.supabase`` tables or ``db.sqlite`` directly.

Usage:
    from minara.repositories.profile_repository import ProfileRepository
"""

from minara.repositories.application_repository import ApplicationRepository
from minara.repositories.base_repository import BaseRepository
from minara.repositories.orphaned_account_repository import OrphanedAccountRepository
from minara.repositories.profile_repository import ProfileRepository

__all__ = [
    "ApplicationRepository",
    "BaseRepository",
    "OrphanedAccountRepository",
    "ProfileRepository",
]
