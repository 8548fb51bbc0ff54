from datetime import datetime, timezone
from typing import Optional
import logging

from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService, database_service
from ..core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class DocumentNumberService:
    """Yearly sequential numbers such as PR-2025-00001 or PO-2025-00042."""

    def __init__(self, db: Optional[DatabaseService] = None):
        self.db = db or database_service

    async def next_number(self, prefix: str, now: Optional[datetime] = None) -> str:
        current_year = (now or datetime.now(timezone.utc)).year
        counter_id = f"{prefix.lower()}_counter_{current_year}"

        # The counter document is created on the first number of the year
        success, next_number, error = await self.db.increment_counter(
            COLLECTIONS['counters'],
            counter_id,
            extra={"year": current_year, "last_updated": datetime.now(timezone.utc)},
        )
        if not success:
            logger.error(f"Failed to increment counter {counter_id}: {error}")
            raise PersistenceError(f"Failed to increment counter: {error}")

        formatted_id = f"{prefix}-{current_year}-{next_number:05d}"
        logger.info(f"Generated document number: {formatted_id}")
        return formatted_id


document_number_service = DocumentNumberService()
