"""Async JSON file access layer.

This module provides a small async client for a single JSON file holding
a list of records. Reads tolerate a missing file; writes are serialized by
an `asyncio.Lock` and replace the file atomically, so a crash mid-write
leaves the previous contents in place.

Domain helpers (sessions, cases) live in the higher-level DAL modules.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List
from uuid import uuid4

import aiofiles
import aiofiles.os

from models.errors import PersistenceError


class AsyncJsonFileClient:
	"""Async reader/writer for one JSON list file.

	Usage:
		client = AsyncJsonFileClient(path)
		async with client.lock:
			records = await client.read_all()
			records.append({...})
			await client.write_all(records)

	Callers hold `lock` across read-modify-write so concurrent writers
	never interleave.
	"""

	def __init__(self, path: Path | str):
		self.path = Path(path)
		self.lock = asyncio.Lock()

	async def read_all(self) -> List[Dict[str, Any]]:
		"""Return the stored list, or an empty list if the file does not exist yet.

		Raises:
			PersistenceError: if the file cannot be read or is not a JSON list.
		"""
		if not self.path.exists():
			return []
		try:
			async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
				raw = await f.read()
		except OSError as exc:
			logging.error(f"Error reading {self.path}: {exc}")
			raise PersistenceError(f"Failed to read {self.path.name}") from exc

		if not raw.strip():
			return []
		try:
			data = json.loads(raw)
		except json.JSONDecodeError as exc:
			logging.error(f"Invalid JSON in {self.path}: {exc}")
			raise PersistenceError(f"{self.path.name} is not valid JSON") from exc
		if not isinstance(data, list):
			raise PersistenceError(f"{self.path.name} must contain a JSON list")
		return data

	async def write_all(self, records: List[Dict[str, Any]]) -> None:
		"""Replace the file contents with `records` in one atomic step."""
		await self.write_text(json.dumps(records, indent=2, ensure_ascii=False))

	async def write_text(self, text: str, path: Path | None = None) -> None:
		"""Write `text` to a temporary sibling file, then move it over the target."""
		target = Path(path) if path is not None else self.path
		tmp_path = target.with_name(f".{target.name}.{uuid4().hex}.tmp")
		try:
			target.parent.mkdir(parents=True, exist_ok=True)
			async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
				await f.write(text)
				await f.flush()
				await asyncio.to_thread(os.fsync, f.fileno())
			await aiofiles.os.replace(tmp_path, target)
		except OSError as exc:
			logging.error(f"Error writing {target}: {exc}")
			if tmp_path.exists():
				try:
					await aiofiles.os.remove(tmp_path)
				except OSError:
					logging.warning(f"Could not remove temporary file {tmp_path}")
			raise PersistenceError(f"Failed to write {target.name}") from exc
