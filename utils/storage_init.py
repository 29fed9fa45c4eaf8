import json
import os
from pathlib import Path
from typing import Optional

import aiofiles

from models.session_models import GatewaySettings

SESSIONS_FILENAME = "sessions.json"
SESSIONS_TEXT_FILENAME = "sessions.txt"
CASES_FILENAME = "cases.json"
REVIEW_GUIDELINES_FILENAME = "review.txt"


class JsonStorageInitializer:
    """
    Manage the flat JSON files using the DATA_DIR environment variable.

    - Files live under <DATA_DIR> (default: ./data next to main.py):
      cases.json, sessions.json and the readable sessions.txt log.
    - A RuntimeError is raised if DATA_DIR points to a file or the directory
      cannot be created.
    - `ensure_storage()` creates missing JSON files holding an empty list.
      Existing files are never touched, so saved sessions survive restarts.
    - Subsequent calls to `ensure_storage()` on the same instance are no-ops.
    """

    def __init__(self, data_dir: Optional[Path | str] = None) -> None:
        env_dir = str(data_dir) if data_dir is not None else os.getenv("DATA_DIR")
        if env_dir is None or not env_dir.strip():
            env_dir = str(Path(__file__).resolve().parent.parent / "data")

        root = Path(env_dir).expanduser()

        if root.exists() and not root.is_dir():
            raise RuntimeError(
                f"DATA_DIR={env_dir!r} points to a file, not a directory "
                f"({root}). Please set DATA_DIR to a directory path."
            )

        try:
            root.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(f"Failed to create or access data directory at {root}") from exc

        self.data_dir = root
        self.sessions_path = root / SESSIONS_FILENAME
        self.sessions_text_path = root / SESSIONS_TEXT_FILENAME
        self.cases_path = root / CASES_FILENAME

        guidelines = os.getenv("REVIEW_GUIDELINES_PATH")
        self.review_guidelines_path = (
            Path(guidelines).expanduser() if guidelines else root / REVIEW_GUIDELINES_FILENAME
        )

        self._initialized = False

    async def ensure_storage(self) -> None:
        """Create empty JSON list files for any store that does not exist yet."""
        if self._initialized:
            return

        for path in (self.sessions_path, self.cases_path):
            if path.exists():
                continue
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(json.dumps([]))

        self._initialized = True


def load_gateway_settings() -> GatewaySettings:
    """Read the default model parameters from OPENAI_MODEL / OPENAI_TEMPERATURE."""
    defaults = GatewaySettings()
    model = os.getenv("OPENAI_MODEL") or defaults.model
    raw_temperature = os.getenv("OPENAI_TEMPERATURE")
    try:
        temperature = float(raw_temperature) if raw_temperature else defaults.temperature
    except ValueError as exc:
        raise RuntimeError(f"OPENAI_TEMPERATURE must be a number, got {raw_temperature!r}") from exc
    return GatewaySettings(model=model, temperature=temperature)


def load_gateway_timeout() -> float:
    """Return the per-call OpenAI timeout in seconds (OPENAI_TIMEOUT, default 60)."""
    raw = os.getenv("OPENAI_TIMEOUT")
    try:
        return float(raw) if raw else 60.0
    except ValueError as exc:
        raise RuntimeError(f"OPENAI_TIMEOUT must be a number, got {raw!r}") from exc
