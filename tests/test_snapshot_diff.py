"""Tests for ycard/snapshot_diff.py — baseline capture and change detection."""

import pytest

from ycard.errors import SnapshotNotCaptured
from ycard.snapshot_diff import Changes, NoChanges, SnapshotTracker

BASELINE = "people:\n  - uid: u1\n    name: A\n"


class TestCapture:
    def test_first_capture_wins(self):
        tracker = SnapshotTracker()
        assert tracker.capture(BASELINE) is True
        assert tracker.capture("something else") is False
        assert tracker.baseline == BASELINE

    def test_empty_text_is_a_real_baseline(self):
        tracker = SnapshotTracker()
        tracker.capture("")
        assert tracker.captured
        assert tracker.request_diff("") == NoChanges()

    def test_diff_before_capture_raises(self):
        with pytest.raises(SnapshotNotCaptured):
            SnapshotTracker().request_diff(BASELINE)


class TestRequestDiff:
    def setup_method(self):
        self.tracker = SnapshotTracker()
        self.tracker.capture(BASELINE)

    def test_identical_text_has_no_changes(self):
        result = self.tracker.request_diff(BASELINE)
        assert result == NoChanges()
        assert not result.has_changes

    def test_changed_text(self):
        edited = BASELINE.replace("name: A", "name: B")
        result = self.tracker.request_diff(edited)
        assert result == Changes(original=BASELINE, modified=edited)
        assert result.has_changes

    @pytest.mark.parametrize("edited", [
        BASELINE + " ",
        BASELINE.rstrip("\n"),
        BASELINE.replace("\n", "\r\n"),
    ])
    def test_whitespace_and_line_endings_count(self, edited):
        assert isinstance(self.tracker.request_diff(edited), Changes)

    def test_baseline_never_moves(self):
        self.tracker.request_diff("other")
        assert self.tracker.request_diff(BASELINE) == NoChanges()


class TestChangesRendering:
    def test_changed_line_count(self):
        changes = Changes(original="a\nb\nc\n", modified="a\nB\nc\nd\n")
        # b -> B is one removed + one added; d is one added
        assert changes.changed_line_count() == 3

    def test_line_ending_change_is_counted(self):
        assert Changes(original="a\n", modified="a").changed_line_count() == 2

    def test_unified_diff(self):
        changes = Changes(original=BASELINE, modified=BASELINE.replace("name: A", "name: B"))
        text = changes.unified_diff(fromfile="before.yaml", tofile="after.yaml")
        lines = text.splitlines()
        assert lines[0] == "--- before.yaml"
        assert lines[1] == "+++ after.yaml"
        assert "-    name: A" in lines
        assert "+    name: B" in lines
        assert text.endswith("\n")
