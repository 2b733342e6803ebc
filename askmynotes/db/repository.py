"""
Async repositories over the ORM models.

`ChunkRepository` is the chunk data source keyed by (user, subject) and
`ReviewCardRepository` implements the review-card store used by
`askmynotes.skills.review_service`.
"""

from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional, Sequence, Set

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from askmynotes.db.models import Chunk, NoteFile, ReviewCard, Subject
from askmynotes.rag.index import ChunkRecord, chunk_records_from_rows
from askmynotes.skills.review_cards import REQUIRED_CARD_FIELDS, ReviewCardSeed
from askmynotes.skills.scheduler import ReviewCardState

MAX_SUBJECTS = 3
SUBJECT_SLOTS = (1, 2, 3)


class SubjectLimitError(ValueError):
    pass


class SubjectRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_user(self, user_id: str) -> List[Subject]:
        result = await self.session.execute(
            select(Subject).where(Subject.user_id == user_id).order_by(Subject.slot)
        )
        return list(result.scalars().all())

    async def get(self, user_id: str, subject_id: str) -> Optional[Subject]:
        result = await self.session.execute(
            select(Subject).where(Subject.id == subject_id, Subject.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def file_counts(self, user_id: str) -> Dict[str, int]:
        result = await self.session.execute(
            select(NoteFile.subject_id, func.count(NoteFile.id))
            .where(NoteFile.user_id == user_id)
            .group_by(NoteFile.subject_id)
        )
        return {subject_id: int(count) for subject_id, count in result.all()}

    async def create(self, user_id: str, name: str) -> Subject:
        """Create a subject in the first free slot; a user has at most three."""
        existing = await self.list_for_user(user_id)
        if len(existing) >= MAX_SUBJECTS:
            raise SubjectLimitError("You can create at most 3 subjects.")
        used = {subject.slot for subject in existing}
        slot = next(s for s in SUBJECT_SLOTS if s not in used)

        subject = Subject(user_id=user_id, name=name.strip(), slot=slot)
        self.session.add(subject)
        await self.session.commit()
        return subject

    async def delete(self, subject: Subject) -> None:
        """Delete a subject with its cards, chunks and files."""
        await self.session.execute(delete(ReviewCard).where(ReviewCard.subject_id == subject.id))
        await self.session.execute(delete(Chunk).where(Chunk.subject_id == subject.id))
        await self.session.execute(delete(NoteFile).where(NoteFile.subject_id == subject.id))
        await self.session.execute(delete(Subject).where(Subject.id == subject.id))
        await self.session.commit()


class NoteFileRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_subject(self, user_id: str, subject_id: str) -> List[NoteFile]:
        result = await self.session.execute(
            select(NoteFile)
            .where(NoteFile.user_id == user_id, NoteFile.subject_id == subject_id)
            .order_by(NoteFile.created_at.desc())
        )
        return list(result.scalars().all())

    async def create(self, user_id: str, subject_id: str, file_name: str, content_type: Optional[str] = None) -> NoteFile:
        note_file = NoteFile(
            user_id=user_id,
            subject_id=subject_id,
            file_name=file_name,
            content_type=content_type,
            parse_status="pending",
        )
        self.session.add(note_file)
        await self.session.commit()
        return note_file

    async def mark_parsed(self, note_file: NoteFile, sections_count: int, chunks_count: int) -> NoteFile:
        note_file.parse_status = "parsed"
        note_file.sections_count = sections_count
        note_file.chunks_count = chunks_count
        note_file.error_message = ""
        await self.session.commit()
        return note_file

    async def mark_failed(self, note_file: NoteFile, message: str) -> NoteFile:
        note_file.parse_status = "error"
        note_file.error_message = message
        await self.session.commit()
        return note_file


class ChunkRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add_records(self, user_id: str, records: Sequence[ChunkRecord]) -> int:
        self.session.add_all(
            [
                Chunk(
                    user_id=user_id,
                    subject_id=record.subject_id,
                    file_id=record.file_id,
                    chunk_id=record.chunk_id,
                    file_name=record.file_name,
                    page_or_section=record.page_or_section,
                    text=record.text,
                    embedding=list(record.embedding),
                )
                for record in records
            ]
        )
        await self.session.commit()
        return len(records)

    async def list_records(self, user_id: str, subject_id: str) -> List[ChunkRecord]:
        """All chunks of the subject, newest first, as ChunkRecords."""
        result = await self.session.execute(
            select(Chunk)
            .where(Chunk.user_id == user_id, Chunk.subject_id == subject_id)
            .order_by(Chunk.created_at.desc(), Chunk.id.desc())
        )
        rows = [
            {
                "id": chunk.id,
                "chunk_id": chunk.chunk_id,
                "file_id": chunk.file_id,
                "file_name": chunk.file_name,
                "page_or_section": chunk.page_or_section,
                "text": chunk.text,
                "embedding": chunk.embedding,
                "subject_id": chunk.subject_id,
            }
            for chunk in result.scalars().all()
        ]
        return chunk_records_from_rows(rows)


def _blank(column):
    return or_(column.is_(None), column == "")


def _insert_ignoring_duplicates(dialect_name: str):
    """INSERT that skips rows hitting the (user, subject, chunk) unique key."""
    if dialect_name == "postgresql":
        stmt = pg_insert(ReviewCard)
    else:
        stmt = sqlite_insert(ReviewCard)
    return stmt.on_conflict_do_nothing(index_elements=["user_id", "subject_id", "chunk_id"])


class ReviewCardRepository:
    """SQLAlchemy implementation of the review-card store."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _valid_filter(user_id: str, subject_id: str):
        required = [getattr(ReviewCard, field) for field in REQUIRED_CARD_FIELDS]
        return (
            ReviewCard.user_id == user_id,
            ReviewCard.subject_id == subject_id,
            *[column.is_not(None) for column in required],
            *[column != "" for column in required],
        )

    async def delete_invalid(self, user_id: str, subject_id: str) -> int:
        result = await self.session.execute(
            delete(ReviewCard).where(
                ReviewCard.user_id == user_id,
                ReviewCard.subject_id == subject_id,
                or_(*[_blank(getattr(ReviewCard, field)) for field in REQUIRED_CARD_FIELDS]),
            )
        )
        await self.session.commit()
        return result.rowcount or 0

    async def existing_chunk_ids(self, user_id: str, subject_id: str) -> Set[str]:
        result = await self.session.execute(
            select(ReviewCard.chunk_id).where(*self._valid_filter(user_id, subject_id)).distinct()
        )
        return {chunk_id for chunk_id in result.scalars().all() if chunk_id}

    async def insert_cards(
        self,
        user_id: str,
        subject_id: str,
        seeds: Sequence[ReviewCardSeed],
        due_at: dt.datetime,
    ) -> int:
        """
        Insert cards for chunks without one; returns how many were created.

        Rows whose chunk already has a card, including one written by a
        concurrent seed after the read above, are skipped and not counted.
        """
        taken = await self.existing_chunk_ids(user_id, subject_id)
        stmt = _insert_ignoring_duplicates(self.session.get_bind().dialect.name)
        created = 0
        for seed in seeds:
            if seed.chunk_id in taken:
                continue
            taken.add(seed.chunk_id)
            result = await self.session.execute(
                stmt.values(
                    user_id=user_id,
                    subject_id=subject_id,
                    chunk_id=seed.chunk_id,
                    file_name=seed.file_name,
                    page_or_section=seed.page_or_section,
                    prompt=seed.prompt,
                    answer=seed.answer,
                    evidence_snippet=seed.evidence_snippet,
                    due_at=due_at,
                    repetitions=0,
                    interval_days=0,
                    ease_factor=2.5,
                    lapses=0,
                    review_count=0,
                    last_rating=None,
                    version=1,
                )
            )
            created += max(result.rowcount or 0, 0)
        await self.session.commit()
        return created

    async def find_due(self, user_id: str, subject_id: str, now: dt.datetime, limit: int) -> List[ReviewCard]:
        result = await self.session.execute(
            select(ReviewCard)
            .where(*self._valid_filter(user_id, subject_id), ReviewCard.due_at <= now)
            .order_by(ReviewCard.due_at, ReviewCard.updated_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(
        self,
        user_id: str,
        subject_id: str,
        *,
        due_before: Optional[dt.datetime] = None,
        reviewed_since: Optional[dt.datetime] = None,
    ) -> int:
        stmt = select(func.count(ReviewCard.id)).where(*self._valid_filter(user_id, subject_id))
        if due_before is not None:
            stmt = stmt.where(ReviewCard.due_at <= due_before)
        if reviewed_since is not None:
            stmt = stmt.where(ReviewCard.last_reviewed_at >= reviewed_since)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def next_due_at(self, user_id: str, subject_id: str, now: dt.datetime) -> Optional[dt.datetime]:
        result = await self.session.execute(
            select(func.min(ReviewCard.due_at)).where(
                *self._valid_filter(user_id, subject_id),
                ReviewCard.due_at > now,
            )
        )
        return result.scalar_one_or_none()

    async def get(self, user_id: str, subject_id: str, card_id: str) -> Optional[ReviewCard]:
        result = await self.session.execute(
            select(ReviewCard)
            .where(*self._valid_filter(user_id, subject_id), ReviewCard.id == card_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def compare_and_set(
        self,
        card: ReviewCard,
        expected_version: int,
        state: ReviewCardState,
    ) -> Optional[ReviewCard]:
        result = await self.session.execute(
            update(ReviewCard)
            .where(ReviewCard.id == card.id, ReviewCard.version == expected_version)
            .values(
                repetitions=state.repetitions,
                interval_days=state.interval_days,
                ease_factor=state.ease_factor,
                lapses=state.lapses,
                due_at=state.due_at,
                last_rating=state.last_rating,
                last_reviewed_at=state.last_reviewed_at,
                review_count=state.review_count,
                version=expected_version + 1,
                updated_at=dt.datetime.now(dt.timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            await self.session.rollback()
            return None
        await self.session.commit()
        return await self.get(card.user_id, card.subject_id, card.id)
