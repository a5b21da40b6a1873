"""
library.py — In-memory content store shared by every render pass
Entries are written once while the site loads (write lock) and then only read,
possibly by several feed renders at the same time (read lock).
"""
from __future__ import annotations
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from converters import ContentEntry


class LockPoisoned(RuntimeError):
    """A writer failed while holding the lock; the protected state can't be trusted."""


class ReadWriteLock:
    """
    Many readers or one writer. Writers wait for active readers to leave and
    block new readers while waiting.
    An exception escaping write_locked() poisons the lock for good.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    def _check(self) -> None:
        if self._poisoned:
            raise LockPoisoned('content library lock is poisoned by a failed write')

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            self._check()
            while self._writer or self._writers_waiting:
                self._cond.wait()
                self._check()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._check()
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
                    self._check()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        except BaseException:
            self._poisoned = True
            raise
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class Library:
    """All content entries of a site, keyed by source path."""

    def __init__(self) -> None:
        self.lock = ReadWriteLock()
        self._pages: dict[Path, ContentEntry] = {}

    def __len__(self) -> int:
        return len(self._pages)

    def insert(self, entry: ContentEntry) -> None:
        self._pages[entry.path] = entry

    def pages(self) -> list[ContentEntry]:
        return list(self._pages.values())

    def pages_for_lang(self, lang: str) -> list[ContentEntry]:
        return [p for p in self._pages.values() if p.lang == lang]

    def pages_for_section(self, section: str, lang: str) -> list[ContentEntry]:
        return [p for p in self._pages.values() if p.section == section and p.lang == lang]

    def sections(self, lang: str) -> list[str]:
        return sorted({p.section for p in self._pages.values() if p.lang == lang and p.section})

    def translations_of(self, entry: ContentEntry) -> list[ContentEntry]:
        """Entries with the same section and slug in the other languages."""
        return sorted(
            (p for p in self._pages.values()
             if p.translation_key == entry.translation_key and p.path != entry.path),
            key=lambda p: p.lang,
        )
