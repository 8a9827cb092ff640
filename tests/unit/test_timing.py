"""Unit tests for per-stage timers."""

from unittest.mock import patch

import pytest

from pagerender.utils.timing import StageTimers


def test_stages_accumulate_and_report_total():
    ticks = iter([0.0, 1.0, 1.5, 2.0, 2.25, 3.0])
    with patch("pagerender.utils.timing.time.perf_counter", side_effect=lambda: next(ticks)):
        timers = StageTimers()
        with timers.stage("fetch"):
            pass
        with timers.stage("fetch"):
            pass
        millis = timers.as_millis()

    assert millis == {"fetch": 750.0, "total": 3000.0}


def test_failed_stage_is_still_timed():
    timers = StageTimers()

    with pytest.raises(ValueError):
        with timers.stage("render"):
            raise ValueError("boom")

    assert "render" in timers.totals
