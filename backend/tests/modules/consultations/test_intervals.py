"""Tests for billable time from presence intervals."""

import random
from datetime import timedelta

import pytest

from modules.consultations.intervals import (
    coarse_billable_seconds,
    intervals_from_participants,
    overlap_seconds,
    total_span_seconds,
    union_spans,
)
from modules.consultations.models import ParticipantInterval
from modules.video.models import CallParticipant
from tests.conftest import NOW


def at(seconds: int):
    return NOW + timedelta(seconds=seconds)


def span(start: int, end: int = None) -> ParticipantInterval:
    return ParticipantInterval(joined_at=at(start), left_at=at(end) if end is not None else None)


def random_spans(rng: random.Random) -> list[ParticipantInterval]:
    """Up to five spans in 0-2000s, possibly overlapping, with an occasional open one."""
    spans = []
    for _ in range(rng.randint(0, 5)):
        start = rng.randint(0, 1900)
        if rng.random() < 0.1:
            spans.append(span(start))
        else:
            spans.append(span(start, start + rng.randint(1, 400)))
    return spans


class TestUnionSpans:
    def test_merges_overlapping(self):
        """Overlapping and touching spans should merge."""
        spans = union_spans([span(0, 60), span(30, 90), span(90, 120)], at(500))
        assert spans == [(at(0), at(120))]

    def test_sorts_and_keeps_gaps(self):
        spans = union_spans([span(100, 150), span(0, 60)], at(500))
        assert spans == [(at(0), at(60)), (at(100), at(150))]

    def test_open_span_ends_at_now(self):
        assert union_spans([span(10)], at(70)) == [(at(10), at(70))]

    def test_drops_inverted_spans(self):
        assert union_spans([span(60, 30)], at(100)) == []

    def test_total_seconds(self):
        assert total_span_seconds([span(0, 60), span(30, 90)], at(100)) == 90


class TestOverlapSeconds:
    def test_dual_presence(self):
        """User 0-180 and expert 30-150 should bill 120 seconds."""
        seconds = overlap_seconds([span(0, 180)], [span(30, 150)], 600, at(1000))
        assert seconds == 120

    def test_reconnections(self):
        """Each reconnection only counts while the other party is present."""
        user = [span(0, 60), span(120, 240)]
        expert = [span(30, 150), span(200, 300)]
        # 30-60, 120-150, 200-240
        assert overlap_seconds(user, expert, 600, at(1000)) == 100

    def test_never_together(self):
        assert overlap_seconds([span(0, 60)], [span(60, 120)], 600, at(1000)) == 0

    def test_capped(self):
        assert overlap_seconds([span(0)], [span(0)], 300, at(1000)) == 300

    def test_open_intervals_use_now(self):
        assert overlap_seconds([span(0)], [span(20)], 600, at(80)) == 60

    def test_empty(self):
        assert overlap_seconds([], [span(0, 60)], 600, at(100)) == 0

    def test_unsorted_and_swapped(self):
        """Input order and argument order should not change the result."""
        user = [span(120, 240), span(0, 60)]
        expert = [span(200, 300), span(30, 150)]

        expected = overlap_seconds(user, expert, 600, at(1000))

        assert expected == 100
        assert overlap_seconds(list(reversed(user)), expert, 600, at(1000)) == expected
        assert overlap_seconds(expert, user, 600, at(1000)) == expected

    @pytest.mark.parametrize("seed", range(20))
    def test_random_interval_sets(self, seed):
        """Overlap never exceeds the cap or either party's own presence."""
        rng = random.Random(seed)
        now = at(2000)
        for _ in range(50):
            user = random_spans(rng)
            expert = random_spans(rng)
            cap = rng.randint(0, 1500)

            seconds = overlap_seconds(user, expert, cap, now)

            assert 0 <= seconds <= cap
            assert seconds <= min(total_span_seconds(user, now), total_span_seconds(expert, now))
            shuffled = user[:]
            rng.shuffle(shuffled)
            assert overlap_seconds(shuffled, expert, cap, now) == seconds
            assert overlap_seconds(expert, user, cap, now) == seconds


class TestCoarseBillableSeconds:
    def test_uses_later_anchor(self):
        assert coarse_billable_seconds(at(0), at(30), at(150), 600) == 120

    def test_no_anchor(self):
        assert coarse_billable_seconds(None, None, at(150), 600) == 0

    def test_clamped(self):
        assert coarse_billable_seconds(at(0), None, at(900), 600) == 600
        assert coarse_billable_seconds(at(100), None, at(50), 600) == 0


class TestIntervalsFromParticipants:
    def test_filters_by_participant(self):
        participants = [
            CallParticipant(user_id="user-1", joined_at=at(0), left_at=at(60)),
            CallParticipant(user_id="expert-1", joined_at=at(10), left_at=None),
            CallParticipant(user_id="user-1", joined_at=None),
        ]

        intervals = intervals_from_participants(participants, "user-1")

        assert intervals == [span(0, 60)]
