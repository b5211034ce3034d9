# quizly/services/whitelist.py
import logging
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from quizly.core.exceptions import NotFoundError, db_exception
from quizly.models.student import WhitelistEntry
from quizly.schemas.whitelist import WhitelistEntryCreate

logger = logging.getLogger(__name__)


class WhitelistService:
    """Class roster lookups; the only gate in front of quiz participation."""

    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def is_whitelisted(self, name: str, section: str) -> Optional[WhitelistEntry]:
        """Case-insensitive match on both fields against active entries"""
        return (
            self.db.query(WhitelistEntry)
            .filter(
                func.lower(WhitelistEntry.name) == name.lower(),
                func.lower(WhitelistEntry.section) == section.lower(),
                WhitelistEntry.is_active.is_(True),
            )
            .first()
        )

    @db_exception
    def list_students(self) -> List[WhitelistEntry]:
        return (
            self.db.query(WhitelistEntry)
            .filter(WhitelistEntry.is_active.is_(True))
            .order_by(WhitelistEntry.section.asc(), WhitelistEntry.name.asc())
            .all()
        )

    @db_exception
    def list_students_by_section(self, section: str) -> List[WhitelistEntry]:
        return (
            self.db.query(WhitelistEntry)
            .filter(
                func.lower(WhitelistEntry.section) == section.lower(),
                WhitelistEntry.is_active.is_(True),
            )
            .order_by(WhitelistEntry.name.asc())
            .all()
        )

    @db_exception
    def list_sections(self) -> List[str]:
        rows = (
            self.db.query(WhitelistEntry.section)
            .filter(WhitelistEntry.is_active.is_(True))
            .distinct()
            .order_by(WhitelistEntry.section.asc())
            .all()
        )
        return [row.section for row in rows]

    @db_exception
    def add_students(self, entries: Iterable[WhitelistEntryCreate]) -> int:
        """Insert roster entries, skipping ones already present (any case)."""
        added = 0
        for entry in entries:
            name, section = entry.name.strip(), entry.section.strip()
            existing = (
                self.db.query(WhitelistEntry)
                .filter(
                    func.lower(WhitelistEntry.name) == name.lower(),
                    func.lower(WhitelistEntry.section) == section.lower(),
                )
                .first()
            )
            if existing:
                continue
            self.db.add(WhitelistEntry(name=name, section=section, is_active=True))
            self.db.flush()
            added += 1

        self.db.commit()
        logger.info(f"Whitelist updated: {added} new student(s)")
        return added

    @db_exception
    def remove_student(self, entry_id: int) -> WhitelistEntry:
        """Soft delete: the row stays but no longer admits the student."""
        entry = self.db.get(WhitelistEntry, entry_id)
        if not entry:
            raise NotFoundError("Whitelisted student not found")

        entry.is_active = False
        self.db.commit()
        self.db.refresh(entry)
        return entry
