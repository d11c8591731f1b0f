"""
Note repository: daily markdown notes on disk, one `YYYY-MM-DD.md` per day.

Public API
----------
NoteRepository(root).list_note_dates()  → list[date]   (newest first)
NoteRepository(root).read_note(day)     → str          (NoteNotFoundError)
read_record(path)                       → str          (RecordNotFoundError)

Read-only: nothing here touches the notes directory. Bytes that are not
valid UTF-8 come back as U+FFFD instead of failing the read.
"""
from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Optional, Union

from app.core.errors import NoteNotFoundError, RecordNotFoundError

NOTE_FILENAME = re.compile(r"^(\d{4}-\d{2}-\d{2})\.md$")


class NoteRepository:
    def __init__(self, root: Optional[Union[str, Path]]):
        self.root = Path(root) if root else None

    def _is_available(self) -> bool:
        return self.root is not None and self.root.is_dir()

    def note_path(self, day: date) -> Optional[Path]:
        if self.root is None:
            return None
        return self.root / f"{day.isoformat()}.md"

    def list_note_dates(self) -> list[date]:
        """Dates with a note on disk, newest first. Files not named YYYY-MM-DD.md are ignored."""
        if not self._is_available():
            return []

        dates = set()
        for entry in self.root.iterdir():
            m = NOTE_FILENAME.match(entry.name)
            if not m or not entry.is_file():
                continue
            try:
                dates.add(date.fromisoformat(m.group(1)))
            except ValueError:
                # 2024-13-45.md matches the pattern but is not a day
                continue
        return sorted(dates, reverse=True)

    def read_note(self, day: date) -> str:
        path = self.note_path(day)
        if path is None or not path.is_file():
            raise NoteNotFoundError(day)
        return path.read_text(encoding="utf-8", errors="replace")


def read_record(path: Optional[Union[str, Path]]) -> str:
    """Read the aggregate procrastination record document."""
    if not path or not Path(path).is_file():
        raise RecordNotFoundError(str(path or ""))
    return Path(path).read_text(encoding="utf-8", errors="replace")
