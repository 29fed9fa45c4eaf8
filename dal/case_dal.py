"""Async Data Access Layer for cases.json.

Cases are keyed by their unique name.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from dal.json_file_client import AsyncJsonFileClient
from models.case_record import CaseRecord
from models.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from models.session_models import utc_now_iso


class CaseDAL:
    """Data access layer for case records."""

    def __init__(self, cases_path: Path | str) -> None:
        self._client = AsyncJsonFileClient(cases_path)

    async def list_cases(self) -> List[CaseRecord]:
        """Return all cases in stored order."""
        return await self._load()

    async def get_case(self, name: str) -> Optional[CaseRecord]:
        """Return the case called `name`, or None if not found."""
        for record in await self._load():
            if record.name == name:
                return record
        return None

    async def create_case(self, record: CaseRecord) -> CaseRecord:
        """Insert a new case and return it.

        Raises:
            ValidationError: if name or prompt is empty.
            ConflictError: if a case with the same name exists.
        """
        self._validate(record)
        async with self._client.lock:
            records = await self._load()
            if any(c.name == record.name for c in records):
                raise ConflictError("A case with this name already exists")
            created = CaseRecord(name=record.name, prompt=record.prompt, timestamp=record.timestamp or utc_now_iso())
            records.append(created)
            await self._save(records)
        logging.info(f'Case "{created.name}" created')
        return created

    async def update_case(self, name: str, record: CaseRecord) -> CaseRecord:
        """Replace the case called `name`, keeping its timestamp when none is given.

        Raises:
            ValidationError: if name or prompt is empty.
            NotFoundError: if no case is called `name`.
            ConflictError: if renaming onto another existing case.
        """
        self._validate(record)
        async with self._client.lock:
            records = await self._load()
            index = next((i for i, c in enumerate(records) if c.name == name), None)
            if index is None:
                raise NotFoundError("Case not found")
            if record.name != name and any(c.name == record.name for c in records):
                raise ConflictError("A case with this new name already exists")
            updated = CaseRecord(
                name=record.name,
                prompt=record.prompt,
                timestamp=record.timestamp or records[index].timestamp,
            )
            records[index] = updated
            await self._save(records)
        logging.info(f'Case "{name}" updated to "{updated.name}"')
        return updated

    async def delete_case(self, name: str) -> None:
        """Delete the case called `name`; raises NotFoundError if missing."""
        async with self._client.lock:
            records = await self._load()
            remaining = [c for c in records if c.name != name]
            if len(remaining) == len(records):
                raise NotFoundError("Case not found")
            await self._save(remaining)
        logging.info(f'Case "{name}" deleted')

    async def _load(self) -> List[CaseRecord]:
        rows = await self._client.read_all()
        try:
            return [CaseRecord.from_dict(row) for row in rows]
        except (AttributeError, TypeError) as exc:
            raise PersistenceError(f"Malformed case entry in {self._client.path.name}") from exc

    async def _save(self, records: List[CaseRecord]) -> None:
        await self._client.write_all([record.to_dict() for record in records])

    @staticmethod
    def _validate(record: CaseRecord) -> None:
        if not record.name.strip() or not record.prompt.strip():
            raise ValidationError("Name and prompt are required fields")
