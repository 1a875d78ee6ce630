"""
Stats service: derives per-entry timings and aggregate statistics.

Pure read side. Identical input always yields identical output; nothing is
cached between calls.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Sequence, Tuple

from core.helpers.date_time_helper import clamped_duration_seconds, format_session_label
from contractions.logic.session_model import sort_chronologically
from contractions.models.contraction_entry import ContractionLogEntry, Store
from contractions.models.display_entry import DisplayEntry, SessionSummary, StatsSummary


def derive_display(entries: Iterable[ContractionLogEntry]) -> Tuple[DisplayEntry, ...]:
    """
    Sorts *entries* and annotates each with index, duration and interval.

    Returns:
        tuple[DisplayEntry, ...]: Chronological; ``index`` runs 1..N and
        ``interval_sec`` is None only for the first entry.
    """
    ordered = sort_chronologically(entries)
    result: List[DisplayEntry] = []
    previous = None
    for position, entry in enumerate(ordered):
        interval = (
            clamped_duration_seconds(entry.start - previous.end) if previous is not None else None
        )
        result.append(
            DisplayEntry(
                id=entry.id,
                start=entry.start,
                end=entry.end,
                created_at=entry.created_at,
                index=position + 1,
                duration_sec=clamped_duration_seconds(entry.end - entry.start),
                interval_sec=interval,
            )
        )
        previous = entry
    return tuple(result)


def round_half_up(numerator: int, denominator: int) -> int:
    """
    Rounds numerator/denominator to the nearest integer, halves away from zero.

    Exact decimal arithmetic; 5/2 -> 3, 9/4 -> 2.
    """
    mean = Decimal(numerator) / Decimal(denominator)
    return int(mean.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def summarize(display_entries: Sequence[DisplayEntry]) -> StatsSummary:
    count = len(display_entries)
    if count == 0:
        return StatsSummary()

    average_duration = round_half_up(sum(e.duration_sec for e in display_entries), count)
    intervals = [e.interval_sec for e in display_entries if e.interval_sec is not None]
    average_interval = round_half_up(sum(intervals), len(intervals)) if intervals else 0

    return StatsSummary(
        count=count,
        average_duration_sec=average_duration,
        average_interval_sec=average_interval,
        has_interval_data=bool(intervals),
    )


def recent_entries(display_entries: Sequence[DisplayEntry], limit: int = 10) -> Tuple[DisplayEntry, ...]:
    """Most recent first, at most *limit* entries."""
    if limit <= 0:
        return ()
    return tuple(reversed(display_entries[-limit:]))


def session_summaries(store: Store) -> Tuple[SessionSummary, ...]:
    """Every session except the current one, newest day first."""
    past_ids = sorted(
        (sid for sid in store.sessions if sid != store.current_session_id),
        reverse=True,
    )
    summaries = []
    for sid in past_ids:
        display = derive_display(store.sessions[sid].entries)
        summaries.append(
            SessionSummary(
                session_id=sid,
                label=format_session_label(sid),
                entries=display,
                stats=summarize(display),
            )
        )
    return tuple(summaries)
