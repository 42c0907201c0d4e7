"""Tests for inter-call pacing."""

from prospect_engine.pacing import CallPacer


def test_between_skips_after_last_item(no_sleep):
    pacer = CallPacer(250, sleep=no_sleep)

    for index in range(3):
        pacer.between(index, 3)

    assert no_sleep.delays == [0.25, 0.25]
    assert pacer.waits == 2


def test_zero_delay_never_sleeps(no_sleep):
    pacer = CallPacer(0, sleep=no_sleep)

    pacer.wait()
    pacer.wait()

    assert no_sleep.delays == []
    assert pacer.waits == 2


def test_negative_delay_is_clamped(no_sleep):
    pacer = CallPacer(-10, sleep=no_sleep)

    pacer.wait()

    assert pacer.delay_ms == 0
    assert no_sleep.delays == []
