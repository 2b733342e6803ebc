"""
Ingest plain-text note files into a subject from the command line.

Two modes:
- Dry run (--dry-run): parse and chunk the files and print counts, no DB writes.
- Default: create the subject if needed (first free slot), then store each
  file with its embedded chunks in the configured database.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List

from askmynotes.db.repository import ChunkRepository, NoteFileRepository, SubjectRepository
from askmynotes.db.session import AsyncSessionLocal, create_all
from askmynotes.ingest import chunk_sections, ingest_sections, parse_upload
from askmynotes.llm import create_client
from askmynotes.rag.embeddings import create_embedder

logger = logging.getLogger("ingest_notes")


def dry_run(paths: List[Path]) -> None:
    for path in paths:
        sections = parse_upload(path.name, path.read_bytes())
        chunks = chunk_sections(sections, max_chars=700, overlap_chars=120, min_chars=60)
        print(f"{path.name}: {len(sections)} sections, {len(chunks)} chunks")


async def ingest_files(user_id: str, subject_name: str, paths: List[Path], workers: int) -> None:
    await create_all()
    embedder = create_embedder(create_client())

    async with AsyncSessionLocal() as session:
        subjects = SubjectRepository(session)
        existing = {s.name.lower(): s for s in await subjects.list_for_user(user_id)}
        subject = existing.get(subject_name.strip().lower())
        if subject is None:
            subject = await subjects.create(user_id, subject_name)
            logger.info("Created subject %r in slot %d", subject.name, subject.slot)

        files = NoteFileRepository(session)
        chunks = ChunkRepository(session)
        for path in paths:
            note_file = await files.create(user_id, subject.id, path.name, "text/plain")
            try:
                sections = parse_upload(path.name, path.read_bytes())
                records = ingest_sections(
                    sections,
                    subject_id=subject.id,
                    file_id=note_file.id,
                    file_name=note_file.file_name,
                    embedder=embedder,
                    max_workers=workers,
                )
            except ValueError as exc:
                await files.mark_failed(note_file, str(exc))
                logger.warning("Skipping %s: %s", path, exc)
                continue
            await chunks.add_records(user_id, records)
            await files.mark_parsed(note_file, len(sections), len(records))
            print(f"{path.name}: {len(records)} chunks stored")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Ingest .txt/.md note files into an AskMyNotes subject.",
    )
    parser.add_argument("paths", nargs="+", type=Path, help="Note files to ingest")
    parser.add_argument("--user", required=True, help="Owner user id")
    parser.add_argument("--subject", required=True, help="Subject name (created if missing)")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Concurrent embedding batches (default: 1)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only parse and chunk; print counts without writing to the database",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    missing = [p for p in args.paths if not p.is_file()]
    if missing:
        parser.error(f"File(s) not found: {', '.join(str(p) for p in missing)}")

    if args.dry_run:
        dry_run(args.paths)
        return

    asyncio.run(ingest_files(args.user, args.subject, args.paths, args.workers))


if __name__ == "__main__":
    main()
