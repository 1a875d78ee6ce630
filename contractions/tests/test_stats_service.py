"""Display derivation and summary statistics."""
from __future__ import annotations

import pytest

from contractions.logic.session_model import build_session
from contractions.logic.stats_service import (
    derive_display,
    recent_entries,
    round_half_up,
    session_summaries,
    summarize,
)
from contractions.models.contraction_entry import ContractionLogEntry, Store
from contractions.models.display_entry import DisplayEntry, StatsSummary
from contractions.tests.conftest import DAY1, DAY2, T0


def _entry(eid: str, start_s: int, end_s: int) -> ContractionLogEntry:
    return ContractionLogEntry(eid, T0 + start_s * 1000, T0 + end_s * 1000, T0)


def _display(duration: int, interval=None, index: int = 1) -> DisplayEntry:
    return DisplayEntry(f"d{index}", T0, T0 + duration * 1000, T0, index, duration, interval)


def test_derive_display_sorts_and_numbers() -> None:
    entries = [_entry("c", 600, 650), _entry("a", 0, 40), _entry("b", 300, 345)]
    display = derive_display(entries)

    assert [d.id for d in display] == ["a", "b", "c"]
    assert [d.index for d in display] == [1, 2, 3]
    assert [d.duration_sec for d in display] == [40, 45, 50]
    assert [d.interval_sec for d in display] == [None, 260, 255]


def test_derive_display_clamps_overlap_to_zero() -> None:
    display = derive_display([_entry("a", 0, 60), _entry("b", 30, 90)])
    assert display[1].interval_sec == 0


def test_derive_display_is_deterministic() -> None:
    entries = [_entry("b", 100, 130), _entry("a", 0, 20)]
    assert derive_display(entries) == derive_display(entries)
    assert derive_display([]) == ()


def test_summarize_without_interval_data() -> None:
    stats = summarize([_display(10, index=1), _display(20, index=2), _display(30, index=3)])
    assert stats.count == 3
    assert stats.average_duration_sec == 20
    assert stats.average_interval_sec == 0
    assert stats.has_interval_data is False


def test_summarize_averages_only_defined_intervals() -> None:
    display = derive_display([_entry("a", 0, 40), _entry("b", 300, 345), _entry("c", 600, 650)])
    stats = summarize(display)
    assert stats == StatsSummary(count=3, average_duration_sec=45, average_interval_sec=258, has_interval_data=True)


def test_summarize_empty() -> None:
    assert summarize([]) == StatsSummary(0, 0, 0, False)


@pytest.mark.parametrize(
    "durations, expected",
    [([1, 2], 2), ([2, 3], 3), ([1, 1, 2], 1), ([1, 2, 2], 2), ([0], 0)],
)
def test_average_rounds_half_up(durations, expected) -> None:
    display = [_display(d, index=i + 1) for i, d in enumerate(durations)]
    assert summarize(display).average_duration_sec == expected


def test_round_half_up_is_away_from_zero() -> None:
    assert round_half_up(5, 2) == 3
    assert round_half_up(-5, 2) == -3
    assert round_half_up(9, 4) == 2


def test_recent_entries_most_recent_first_capped() -> None:
    display = derive_display([_entry(f"e{i}", i * 100, i * 100 + 30) for i in range(12)])
    recent = recent_entries(display, 10)
    assert len(recent) == 10
    assert recent[0].id == "e11"
    assert recent[-1].id == "e2"
    assert recent_entries(display[:3], 10)[0].index == 3


def test_session_summaries_exclude_current_and_newest_first() -> None:
    store = Store(
        DAY2,
        {
            "2026-10-17": build_session("2026-10-17", [_entry("x", 0, 30)]),
            DAY1: build_session(DAY1, [_entry("a", 0, 40), _entry("b", 300, 360)]),
            DAY2: build_session(DAY2),
        },
    )
    summaries = session_summaries(store)
    assert [s.session_id for s in summaries] == [DAY1, "2026-10-17"]
    assert summaries[0].label == "Mon, Oct 19"
    assert summaries[0].stats.count == 2
    assert summaries[0].stats.average_duration_sec == 50
