"""Chapter entries and chapter lists."""

from __future__ import annotations

from collections.abc import Iterable

from trackmix.domain.ids import DEFAULT_ALLOCATOR, IdAllocator
from trackmix.domain.overlay import ChapterOverlay, effective
from trackmix.domain.probe import ProbedChapter

FFMETADATA_HEADER = ";FFMETADATA1\n"


class ChapterEntry:
    """One chapter, overridable field by field."""

    def __init__(
        self,
        probed: ProbedChapter,
        *,
        is_original: bool = True,
        overlay: ChapterOverlay | None = None,
    ) -> None:
        self._probed = probed
        self.is_original = is_original
        self._overlay = overlay if overlay is not None else ChapterOverlay()

    def __repr__(self) -> str:
        return (
            f"ChapterEntry(id={self.id}, start={self.start}, end={self.end}, "
            f"title={self.title!r})"
        )

    @property
    def id(self) -> int:
        return self._probed.id

    @property
    def time_base(self) -> str:
        return effective(self._probed.time_base, self._overlay.time_base)

    @time_base.setter
    def time_base(self, value: str) -> None:
        self._overlay.time_base = value

    @property
    def start(self) -> int:
        return effective(self._probed.start, self._overlay.start)

    @start.setter
    def start(self, value: int) -> None:
        self._overlay.start = value

    @property
    def end(self) -> int:
        return effective(self._probed.end, self._overlay.end)

    @end.setter
    def end(self, value: int) -> None:
        self._overlay.end = value

    @property
    def title(self) -> str:
        return effective(self._probed.title, self._overlay.title)

    @title.setter
    def title(self, value: str) -> None:
        self._overlay.title = value

    @property
    def is_modified(self) -> bool:
        return not self._overlay.is_empty

    def to_ffmetadata(self) -> str:
        """Render this chapter as an FFMETADATA [CHAPTER] section."""
        return (
            "[CHAPTER]\n"
            f"TIMEBASE={self.time_base}\n"
            f"START={self.start}\n"
            f"END={self.end}\n"
            f"title={self.title}\n"
        )

    def copy(self) -> ChapterEntry:
        return ChapterEntry(
            self._probed, is_original=False, overlay=self._overlay.clone()
        )


class ChapterList:
    """Ordered chapters read from one source file.

    Attributes:
        id: Unique id issued by the allocator.
        source_path: File the chapters were probed from.
        entries: Chapter entries in playback order.
    """

    def __init__(
        self,
        source_path: str,
        entries: Iterable[ChapterEntry] = (),
        *,
        is_original: bool = True,
        allocator: IdAllocator | None = None,
    ) -> None:
        self.id = (allocator or DEFAULT_ALLOCATOR).next_id()
        self.source_path = source_path
        self.entries = list(entries)
        self.is_original = is_original

    @classmethod
    def from_probe(
        cls,
        source_path: str,
        chapters: Iterable[ProbedChapter],
        allocator: IdAllocator | None = None,
    ) -> ChapterList:
        return cls(
            source_path,
            (ChapterEntry(chapter) for chapter in chapters),
            allocator=allocator,
        )

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return (
            f"ChapterList(id={self.id}, source_path={self.source_path!r}, "
            f"entries={len(self.entries)})"
        )

    @property
    def is_modified(self) -> bool:
        """Return True if any entry has a pending change."""
        return any(entry.is_modified for entry in self.entries)

    def build_chapters_text(self) -> str | None:
        """Serialize every entry as FFMETADATA text.

        Returns:
            The metadata text when any entry is modified, else None (the
            chapters can then be copied straight from the source file).
        """
        if not self.is_modified:
            return None
        return FFMETADATA_HEADER + "".join(
            entry.to_ffmetadata() for entry in self.entries
        )

    def copy(self, allocator: IdAllocator | None = None) -> ChapterList:
        """Return an independent list with copied entries and a fresh id."""
        return ChapterList(
            self.source_path,
            (entry.copy() for entry in self.entries),
            is_original=False,
            allocator=allocator,
        )
