"""
Request dependencies: caller identity, runtime, subject lookup.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from askmynotes.db.models import Subject
from askmynotes.db.repository import ChunkRepository, SubjectRepository
from askmynotes.db.session import get_db
from askmynotes.rag.index import ChunkRecord
from askmynotes.runtime import Runtime


async def get_user_id(x_user_id: Annotated[Optional[str], Header()] = None) -> str:
    """The caller's id from `X-User-Id`; session issuance lives in front of this API."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return x_user_id.strip()


def get_runtime(request: Request) -> Runtime:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        runtime = Runtime()
        request.app.state.runtime = runtime
    return runtime


async def get_subject(
    subject_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: Annotated[str, Depends(get_user_id)],
) -> Subject:
    subject = await SubjectRepository(db).get(user_id, subject_id)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    return subject


async def require_chunks(db: AsyncSession, subject: Subject, message: str) -> List[ChunkRecord]:
    """The subject's chunks, or 400 with `message` when nothing is uploaded yet."""
    chunks = await ChunkRepository(db).list_records(subject.user_id, subject.id)
    if not chunks:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return chunks


DbSession = Annotated[AsyncSession, Depends(get_db)]
UserId = Annotated[str, Depends(get_user_id)]
CurrentSubject = Annotated[Subject, Depends(get_subject)]
CurrentRuntime = Annotated[Runtime, Depends(get_runtime)]
