"""
Billable time from participant presence intervals.

A consultation is billed only for the time both parties were in the call
together. Each party's presence is a list of (joined_at, left_at) spans;
reconnections produce several spans, and a span that has not ended yet
extends to the evaluation time.
"""

from datetime import datetime
from typing import Iterable, Optional

from modules.video.models import CallParticipant

from .models import ParticipantInterval

Span = tuple[datetime, datetime]


def union_spans(intervals: Iterable[ParticipantInterval], now: datetime) -> list[Span]:
    """
    Merge one participant's intervals into disjoint, sorted spans.

    Open intervals end at now. Empty or inverted spans are dropped.
    """
    spans = []
    for interval in intervals:
        end = interval.left_at or now
        if end > interval.joined_at:
            spans.append((interval.joined_at, end))
    spans.sort()

    merged: list[Span] = []
    for start, end in spans:
        if merged and start <= merged[-1][1]:
            if end > merged[-1][1]:
                merged[-1] = (merged[-1][0], end)
        else:
            merged.append((start, end))
    return merged


def total_span_seconds(intervals: Iterable[ParticipantInterval], now: datetime) -> int:
    """Seconds covered by the union of one participant's intervals."""
    return int(sum((end - start).total_seconds() for start, end in union_spans(intervals, now)))


def overlap_seconds(
    user_intervals: Iterable[ParticipantInterval],
    expert_intervals: Iterable[ParticipantInterval],
    cap: int,
    now: datetime,
) -> int:
    """
    Seconds during which both participants were present, clamped to [0, cap].

    Args:
        user_intervals: The user's presence intervals, any order
        expert_intervals: The expert's presence intervals, any order
        cap: Maximum billable seconds
        now: End time for intervals that are still open
    """
    user_spans = union_spans(user_intervals, now)
    expert_spans = union_spans(expert_intervals, now)

    total = 0.0
    i = j = 0
    while i < len(user_spans) and j < len(expert_spans):
        start = max(user_spans[i][0], expert_spans[j][0])
        end = min(user_spans[i][1], expert_spans[j][1])
        if end > start:
            total += (end - start).total_seconds()
        if user_spans[i][1] < expert_spans[j][1]:
            i += 1
        else:
            j += 1

    return max(0, min(int(total), cap))


def coarse_billable_seconds(
    start_time: Optional[datetime],
    both_joined_at: Optional[datetime],
    end_time: datetime,
    cap: int,
) -> int:
    """
    Fallback when no interval data exists: from the later of the start
    time and the first dual presence until the end time, capped.
    """
    anchors = [t for t in (start_time, both_joined_at) if t is not None]
    if not anchors:
        return 0
    seconds = int((end_time - max(anchors)).total_seconds())
    return max(0, min(seconds, cap))


def intervals_from_participants(
    participants: Iterable[CallParticipant],
    participant_id: str,
) -> list[ParticipantInterval]:
    """Presence intervals of one participant from the platform's session list."""
    return [
        ParticipantInterval(joined_at=p.joined_at, left_at=p.left_at)
        for p in participants
        if p.user_id == participant_id and p.joined_at is not None
    ]
