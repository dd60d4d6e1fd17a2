"""Tests for chapter entries and chapter lists."""

from trackmix.domain.chapters import FFMETADATA_HEADER, ChapterEntry, ChapterList
from trackmix.domain.probe import ProbedChapter


def probed_chapters():
    return [
        ProbedChapter(id=0, time_base="1/1000", start=0, end=600000, title="Opening"),
        ProbedChapter(
            id=1, time_base="1/1000", start=600000, end=3600000, title="Finale"
        ),
    ]


class TestChapterEntry:
    def test_reads_probe(self):
        entry = ChapterEntry(probed_chapters()[0])
        assert (entry.id, entry.time_base, entry.start, entry.end, entry.title) == (
            0,
            "1/1000",
            0,
            600000,
            "Opening",
        )
        assert not entry.is_modified

    def test_override(self):
        entry = ChapterEntry(probed_chapters()[0])
        entry.title = "Cold Open"
        entry.end = 500000
        assert entry.title == "Cold Open"
        assert entry.end == 500000
        assert entry.is_modified

    def test_to_ffmetadata(self):
        entry = ChapterEntry(probed_chapters()[1])
        assert entry.to_ffmetadata() == (
            "[CHAPTER]\nTIMEBASE=1/1000\nSTART=600000\nEND=3600000\ntitle=Finale\n"
        )

    def test_copy_is_independent(self):
        entry = ChapterEntry(probed_chapters()[0])
        duplicate = entry.copy()
        duplicate.title = "Changed"
        assert entry.title == "Opening"
        assert not duplicate.is_original


class TestChapterList:
    def test_from_probe(self, allocator):
        chapters = ChapterList.from_probe(
            "/media/movie.mkv", probed_chapters(), allocator
        )
        assert len(chapters) == 2
        assert chapters.source_path == "/media/movie.mkv"
        assert chapters.is_original

    def test_unmodified_has_no_text(self, allocator):
        chapters = ChapterList.from_probe("/a.mkv", probed_chapters(), allocator)
        assert chapters.build_chapters_text() is None

    def test_modified_serializes_every_entry(self, allocator):
        chapters = ChapterList.from_probe("/a.mkv", probed_chapters(), allocator)
        chapters.entries[1].title = "The End"

        text = chapters.build_chapters_text()

        assert text == (
            FFMETADATA_HEADER
            + "[CHAPTER]\nTIMEBASE=1/1000\nSTART=0\nEND=600000\ntitle=Opening\n"
            + "[CHAPTER]\nTIMEBASE=1/1000\nSTART=600000\nEND=3600000\n"
            + "title=The End\n"
        )

    def test_copy(self, allocator):
        chapters = ChapterList.from_probe("/a.mkv", probed_chapters(), allocator)
        duplicate = chapters.copy(allocator)
        duplicate.entries[0].title = "Changed"

        assert duplicate.id != chapters.id
        assert not duplicate.is_original
        assert chapters.entries[0].title == "Opening"
        assert not chapters.is_modified
        assert duplicate.is_modified
