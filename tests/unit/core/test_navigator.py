# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for SegmentNavigator.
"""

import pytest

from core.playback.navigator import SegmentNavigator
from core.subtitles.models import Segment


@pytest.fixture
def segments():
    return [Segment(start=i * 2.0, end=i * 2.0 + 1.5, text=f"line {i}") for i in range(5)]


def window_range(navigator):
    window = navigator.current_window()
    return window.start_index, window.end_index


class TestSegmentNavigator:
    """Test suite for SegmentNavigator."""

    def test_empty_navigator_has_no_window(self):
        navigator = SegmentNavigator()

        assert navigator.current_window() is None
        assert navigator.is_at_end()

    def test_default_group_size_is_one(self, segments):
        navigator = SegmentNavigator(segments)

        window = navigator.current_window()
        assert (window.start_index, window.end_index) == (0, 1)
        assert window.start == 0.0
        assert window.end == 1.5

    def test_grouped_advance_clamps_at_end(self, segments):
        navigator = SegmentNavigator(segments, group_size=2)
        seen = []

        for _ in range(3):
            seen.append(window_range(navigator))
            navigator.advance(2)

        assert seen == [(0, 2), (2, 4), (4, 5)]
        assert window_range(navigator) == (4, 5)

    def test_advance_before_first_clamps(self, segments):
        navigator = SegmentNavigator(segments)

        navigator.advance(-3)

        assert navigator.current_index == 0

    def test_advance_past_last_clamps(self, segments):
        navigator = SegmentNavigator(segments)

        navigator.advance(50)

        assert navigator.current_index == 4
        assert window_range(navigator) == (4, 5)

    def test_window_text_and_span(self, segments):
        navigator = SegmentNavigator(segments, group_size=3)

        window = navigator.current_window()

        assert window.text == "line 0 line 1 line 2"
        assert window.start == 0.0
        assert window.end == 5.5
        assert len(window) == 3

    def test_window_end_never_before_start(self):
        navigator = SegmentNavigator(
            [Segment(start=10.0, end=12.0, text="b"), Segment(start=1.0, end=2.0, text="a")],
            group_size=2,
        )

        window = navigator.current_window()

        assert window.start == 10.0
        assert window.end == 10.0

    def test_set_group_size_applies_to_next_window(self, segments):
        navigator = SegmentNavigator(segments)
        navigator.advance(1)

        navigator.set_group_size(3)

        assert window_range(navigator) == (1, 4)

    @pytest.mark.parametrize("bad", [0, -1, 1.5, True, "2"])
    def test_invalid_group_size(self, segments, bad):
        navigator = SegmentNavigator(segments)

        with pytest.raises(ValueError):
            navigator.set_group_size(bad)

        assert navigator.group_size == 1

    def test_load_resets_cursor(self, segments):
        navigator = SegmentNavigator(segments)
        navigator.advance(3)

        navigator.load(segments[:2])

        assert navigator.current_index == 0
        assert len(navigator) == 2

    def test_is_at_end(self, segments):
        navigator = SegmentNavigator(segments, group_size=2)

        assert not navigator.is_at_end()
        navigator.advance(3)
        assert navigator.is_at_end()

    def test_segments_returns_copy(self, segments):
        navigator = SegmentNavigator(segments)

        navigator.segments.clear()

        assert len(navigator) == 5
