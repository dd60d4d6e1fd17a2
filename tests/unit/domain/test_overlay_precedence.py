"""Tests for the probed/overlay precedence rules."""

from trackmix.domain.overlay import ChapterOverlay, TrackOverlay, effective


class TestEffective:
    """Tests for effective()."""

    def test_overlay_wins(self):
        assert effective("eng", "fre") == "fre"

    def test_probed_used_when_overlay_missing(self):
        assert effective("eng", None) == "eng"

    def test_falsy_overlay_still_wins(self):
        """Zero and empty string are real values, not 'missing'."""
        assert effective(2.5, 0.0) == 0.0
        assert effective("title", "") == ""


class TestTrackOverlay:
    """Tests for TrackOverlay."""

    def test_new_overlay_is_empty(self):
        assert TrackOverlay().is_empty

    def test_explicit_unset_is_a_change(self):
        overlay = TrackOverlay(tags={"title": None})
        assert not overlay.is_empty

    def test_empty_dispositions_is_a_change(self):
        """An empty mapping clears dispositions; it is not 'unchanged'."""
        assert not TrackOverlay(dispositions={}).is_empty

    def test_clone_shares_no_mutable_state(self):
        original = TrackOverlay(
            tags={"language": "eng"},
            dispositions={"default": True},
            conversion={"codec": "opus", "bitrate": 96000.0},
        )
        clone = original.clone()

        clone.tags["language"] = "fre"
        clone.dispositions["forced"] = True
        clone.conversion["bitrate"] = 128000.0

        assert original.tags == {"language": "eng"}
        assert original.dispositions == {"default": True}
        assert original.conversion == {"codec": "opus", "bitrate": 96000.0}

    def test_clone_copies_renderer_list(self):
        def renderer(input_index, output_index):
            return []

        original = TrackOverlay(custom_options=[renderer])
        clone = original.clone()
        clone.custom_options.append(renderer)

        assert len(original.custom_options) == 1
        assert clone.custom_options[0] is renderer


class TestChapterOverlay:
    """Tests for ChapterOverlay."""

    def test_is_empty(self):
        assert ChapterOverlay().is_empty
        assert not ChapterOverlay(title="Intro").is_empty

    def test_clone_is_independent(self):
        original = ChapterOverlay(start=10)
        clone = original.clone()
        clone.start = 20
        assert original.start == 10
