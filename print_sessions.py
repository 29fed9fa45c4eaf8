"""Print saved interview sessions as a readable transcript log.

This script reads `sessions.json` from the same `DATA_DIR` the application
uses (via `utils.storage_init.JsonStorageInitializer`), optionally filters
the sessions with the same search the sessions page uses, and prints them in
the `sessions.txt` format.

Run: set the `DATA_DIR` environment variable (or rely on the default `data`
      folder) and run `python print_sessions.py [search terms]`.
"""
import asyncio
import sys
from typing import List, Optional

from dal.session_dal import SessionDAL
from services.session_search import search_sessions
from utils.storage_init import JsonStorageInitializer
from utils.transcript_format import render_sessions_text


async def main(argv: Optional[List[str]] = None) -> str:
    """Load sessions, filter by the joined arguments and print the log text."""
    args = sys.argv[1:] if argv is None else argv
    query = " ".join(args)

    storage = JsonStorageInitializer()
    await storage.ensure_storage()
    dal = SessionDAL(storage.sessions_path)

    sessions = search_sessions(await dal.list_sessions(), query)
    text = render_sessions_text(sessions)
    print(text, end="")
    return text


if __name__ == "__main__":
    asyncio.run(main())
