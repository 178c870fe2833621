"""
Instructor Application Repository.

Data access for the Supabase ``instructor_applications`` table.
"""

from __future__ import annotations

from typing import Any, Optional

from minara.models.result_models import StoreResult
from minara.models.signup_models import InstructorApplication
from minara.repositories.base_repository import BaseRepository


class ApplicationRepository(BaseRepository):
    """Writes instructor applications.  Review transitions belong to the
    admin tooling and are not exposed here."""

    TABLE = "instructor_applications"

    def insert(self, application: InstructorApplication) -> StoreResult:
        """Insert one application row; the store assigns ``id``."""
        row = application.model_dump(mode="json", exclude={"id"})

        def _op() -> Optional[dict[str, Any]]:
            response = self.supabase.table(self.TABLE).insert(row).execute()
            return self._first_row(response)

        result = self._execute_store_call(
            _op,
            operation_name="insert (instructor_applications)",
            entity_id=application.user_id,
            # Row-level security may hide the inserted row from the
            # returned representation; no error means it was written.
            allow_empty=True,
        )
        if result.ok:
            self._logger.info(
                "Instructor application stored for %s", application.user_id,
            )
        return result
