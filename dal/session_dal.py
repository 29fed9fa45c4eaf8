"""Async Data Access Layer for saved interview sessions.

Provides SessionDAL with list / get / upsert / update / delete operations
over `sessions.json`. Every write also refreshes the readable
`sessions.txt` log next to it.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from dal.json_file_client import AsyncJsonFileClient
from models.errors import PersistenceError, ValidationError
from models.session_models import DEFAULT_USER_NAME, SessionDraft, SessionRecord, utc_now_iso
from utils.transcript_format import render_sessions_text, sort_newest_first


class SessionDAL:
    """Data access layer for session records.

    At most one record exists per id. Writes hold the file client's lock
    for the whole read-modify-write cycle.
    """

    def __init__(self, sessions_path: Path | str, text_log_path: Optional[Path | str] = None) -> None:
        self._client = AsyncJsonFileClient(sessions_path)
        self._text_log_path = Path(text_log_path) if text_log_path else None

    @property
    def path(self) -> Path:
        return self._client.path

    async def list_sessions(self) -> List[SessionRecord]:
        """Return all sessions, newest `timestamp` first."""
        return sort_newest_first(await self._load())

    async def get_session(self, session_id: str) -> Optional[SessionRecord]:
        """Return the session for `session_id`, or None if not found."""
        for record in await self._load():
            if record.id == session_id:
                return record
        return None

    async def upsert(self, draft: SessionDraft) -> SessionRecord:
        """Merge onto the record matching `draft.id`, or insert a new record.

        A draft without an id, or with an id that is not stored, is an
        insert: required fields are validated and a fresh id is assigned.

        Raises:
            ValidationError: if an insert lacks caseId, caseName or messages.
            PersistenceError: if the file cannot be read or written.
        """
        async with self._client.lock:
            records = await self._load()
            if draft.id:
                for index, existing in enumerate(records):
                    if existing.id == draft.id:
                        updated = self._merge(existing, draft)
                        records[index] = updated
                        await self._save(records)
                        logging.info(
                            f'Session updated for case: "{updated.case_name}" by user: "{updated.user_name}"'
                        )
                        return updated

            record = self._new_record(draft, {r.id for r in records})
            records.append(record)
            await self._save(records)

        logging.info(
            f'Session saved for case: "{record.case_name}" by user: "{record.user_name}" '
            f"({len(record.messages)} messages)"
        )
        if record.diagnosis:
            logging.info(f"Differential diagnosis included ({len(record.diagnosis)} chars)")
        return record

    async def update(self, session_id: str, draft: SessionDraft) -> Optional[SessionRecord]:
        """Merge `draft` onto an existing record; never inserts. None if not found."""
        async with self._client.lock:
            records = await self._load()
            for index, existing in enumerate(records):
                if existing.id == session_id:
                    updated = self._merge(existing, draft)
                    records[index] = updated
                    await self._save(records)
                    return updated
        return None

    async def delete_by_id(self, session_id: str) -> bool:
        """Delete one session. Returns False if it was not stored."""
        async with self._client.lock:
            records = await self._load()
            remaining = [r for r in records if r.id != session_id]
            if len(remaining) == len(records):
                return False
            removed = next(r for r in records if r.id == session_id)
            await self._save(remaining)
        logging.info(f'Session deleted for case: "{removed.case_name}" (ID: {session_id})')
        return True

    async def delete_all(self) -> int:
        """Delete every session and return how many were removed."""
        async with self._client.lock:
            count = len(await self._load())
            await self._save([])
        logging.info(f"All sessions deleted ({count} sessions)")
        return count

    async def _load(self) -> List[SessionRecord]:
        rows = await self._client.read_all()
        try:
            return [SessionRecord.from_dict(row) for row in rows]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Malformed session entry in {self.path.name}: {exc}") from exc

    async def _save(self, records: List[SessionRecord]) -> None:
        await self._client.write_all([record.to_dict() for record in records])
        if self._text_log_path is None:
            return
        try:
            await self._client.write_text(render_sessions_text(records), self._text_log_path)
        except PersistenceError as exc:
            # sessions.json is already committed at this point.
            logging.error(f"Error writing sessions to text file: {exc}")

    @staticmethod
    def _merge(existing: SessionRecord, draft: SessionDraft) -> SessionRecord:
        """Overlay supplied draft fields onto `existing`.

        Empty identity fields and an empty message list do not override, an
        explicit diagnosis always does (empty included), and a review is only
        replaced by a non-empty one.
        """
        changes = {
            "case_id": draft.case_id or existing.case_id,
            "case_name": draft.case_name or existing.case_name,
            "user_name": draft.user_name or existing.user_name,
            "case_prompt": draft.case_prompt or existing.case_prompt,
            "messages": list(draft.messages) if draft.messages else existing.messages,
            "diagnosis": draft.diagnosis if draft.diagnosis is not None else existing.diagnosis,
            "last_updated": draft.last_updated or utc_now_iso(),
        }
        if draft.review:
            changes["review"] = draft.review
        return dataclasses.replace(existing, **changes)

    @staticmethod
    def _new_record(draft: SessionDraft, taken_ids: set) -> SessionRecord:
        if not draft.case_id or not draft.case_name or not draft.messages:
            raise ValidationError("Missing required fields or invalid data format")

        session_id = uuid4().hex
        while session_id in taken_ids:
            session_id = uuid4().hex

        return SessionRecord(
            id=session_id,
            case_id=draft.case_id,
            case_name=draft.case_name,
            messages=list(draft.messages),
            timestamp=utc_now_iso(),
            case_prompt=draft.case_prompt or "",
            user_name=draft.user_name or DEFAULT_USER_NAME,
            diagnosis=draft.diagnosis or "",
            review=draft.review or None,
        )
