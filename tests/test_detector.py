import math

import pytest

from detector import (
    DetectorConfig,
    DetectorPhase,
    StabilityDetector,
    rank_predictions,
    top_candidate,
)
from errors import InvalidInput


def sample(label="A", prob=0.9, others=("B", "C")):
    rest = (1.0 - prob) / len(others)
    return [(label, prob)] + [(other, rest) for other in others]


def make_detector(threshold=0.7, count=10, delay_ms=2000):
    return StabilityDetector(DetectorConfig(
        confidence_threshold=threshold,
        required_stable_count=count,
        commit_delay_ms=delay_ms,
    ))


def feed(detector, samples_at):
    """Feed (time_ms, sample) pairs, return {time: committed} for commits."""
    commits = {}
    for now, s in samples_at:
        committed = detector.on_sample(s, now)
        if committed is not None:
            commits[now] = committed
    return commits


def test_new_detector_is_idle():
    detector = make_detector()
    assert detector.phase is DetectorPhase.IDLE
    assert detector.state.last_label is None
    assert detector.state.streak_count == 0
    assert detector.state.streak_anchor_time is None


def test_top_candidate_picks_highest_probability_regardless_of_order():
    assert top_candidate([("B", 0.1), ("C", 0.7), ("A", 0.2)]) == ("C", 0.7)


def test_top_candidate_tie_goes_to_first_occurrence():
    assert top_candidate([("B", 0.4), ("A", 0.4), ("C", 0.2)]) == ("B", 0.4)


def test_rank_predictions_is_stable_descending():
    ranked = rank_predictions([("B", 0.2), ("A", 0.5), ("C", 0.2), ("D", 0.1)])
    assert ranked == [("A", 0.5), ("B", 0.2), ("C", 0.2), ("D", 0.1)]


@pytest.mark.parametrize("bad", [
    [],
    "A",
    None,
    [("A",)],
    [("A", 0.5, 0.1)],
    [(1, 0.5)],
    [("A", "0.9")],
    [("A", math.nan)],
    [("A", 1.5)],
    [("A", -0.1)],
    [("A", True)],
])
def test_malformed_sample_raises_invalid_input(bad):
    detector = make_detector()
    with pytest.raises(InvalidInput):
        detector.on_sample(bad, 0)


def test_invalid_input_leaves_state_untouched():
    detector = make_detector()
    detector.on_sample(sample("A"), 0)
    detector.on_sample(sample("A"), 100)
    with pytest.raises(InvalidInput):
        detector.on_sample([], 200)
    assert detector.state.last_label == "A"
    assert detector.state.streak_count == 2


def test_below_threshold_resets_and_never_commits():
    detector = make_detector()
    for i in range(5):
        detector.on_sample(sample("A"), i * 100)
    assert detector.on_sample(sample("A", 0.5), 500) is None
    assert detector.phase is DetectorPhase.IDLE
    assert detector.state.streak_count == 0
    assert detector.state.last_label is None


def test_threshold_is_inclusive():
    detector = make_detector(threshold=0.7)
    detector.on_sample([("A", 0.7), ("B", 0.3)], 0)
    assert detector.state.last_label == "A"
    assert detector.state.streak_count == 1


def test_short_streak_never_commits_however_long_it_lasts():
    detector = make_detector()
    commits = feed(detector, [(i * 10_000, sample("A")) for i in range(9)])
    assert commits == {}
    assert detector.state.streak_count == 9
    assert detector.phase is DetectorPhase.ACCUMULATING
    assert detector.state.streak_anchor_time is None


def test_anchor_set_when_streak_reaches_required_count():
    detector = make_detector()
    feed(detector, [(i * 100, sample("A")) for i in range(10)])
    assert detector.state.streak_count == 10
    assert detector.state.streak_anchor_time == 900
    assert detector.phase is DetectorPhase.STABLE_PENDING


def test_anchor_is_not_moved_by_later_samples():
    detector = make_detector()
    feed(detector, [(i * 100, sample("A")) for i in range(15)])
    assert detector.state.streak_anchor_time == 900
    assert detector.state.streak_count == 15


def test_held_letter_commits_at_2900ms():
    detector = make_detector()
    commits = feed(detector, [(i * 100, sample("A")) for i in range(30)])
    assert commits == {2900: "A"}


def test_state_is_cleared_right_after_commit():
    detector = make_detector()
    for i in range(29):
        assert detector.on_sample(sample("A"), i * 100) is None
    assert detector.on_sample(sample("A"), 2900) == "A"
    assert detector.phase is DetectorPhase.IDLE
    assert detector.state.streak_count == 0
    assert detector.state.streak_anchor_time is None


def test_no_commit_one_tick_before_delay_elapses():
    detector = make_detector()
    commits = feed(detector, [(i * 100, sample("A")) for i in range(10)])
    assert detector.on_sample(sample("A"), 2899) is None
    assert commits == {}


def test_different_label_restarts_streak_and_clears_anchor():
    detector = make_detector()
    feed(detector, [(i * 100, sample("A")) for i in range(12)])
    assert detector.state.streak_anchor_time is not None

    assert detector.on_sample(sample("B"), 1200) is None
    assert detector.state.last_label == "B"
    assert detector.state.streak_count == 1
    assert detector.state.streak_anchor_time is None
    assert detector.phase is DetectorPhase.ACCUMULATING


def test_interruption_invalidates_progress():
    detector = make_detector()
    samples = [(i * 100, sample("A")) for i in range(20)]
    samples.append((2000, sample("A", 0.3)))
    samples += [(2100 + i * 100, sample("A")) for i in range(40)]
    commits = feed(detector, samples)
    # New streak: count 10 at t=3000, commit two seconds later.
    assert commits == {5000: "A"}


def test_held_gesture_needs_a_fresh_streak_before_repeating():
    detector = make_detector()
    commits = feed(detector, [(i * 100, sample("A")) for i in range(70)])
    assert commits == {2900: "A", 5900: "A"}


def test_cooldown_applies_even_with_zero_delay():
    detector = make_detector(delay_ms=0)
    results = [detector.on_sample(sample("A"), i * 100) for i in range(22)]
    committed_at = [i for i, r in enumerate(results) if r == "A"]
    assert committed_at == [10, 21]


def test_new_label_after_commit_starts_its_own_streak():
    detector = make_detector()
    samples = [(i * 100, sample("A")) for i in range(30)]
    samples += [(3000 + i * 100, sample("B")) for i in range(30)]
    commits = feed(detector, samples)
    assert commits == {2900: "A", 5900: "B"}


def test_threshold_change_mid_streak_keeps_count():
    detector = make_detector(threshold=0.7)
    feed(detector, [(i * 100, sample("A", 0.8)) for i in range(5)])
    detector.config.confidence_threshold = 0.75
    detector.on_sample(sample("A", 0.8), 500)
    assert detector.state.streak_count == 6


def test_raised_threshold_stops_future_samples_qualifying():
    detector = make_detector(threshold=0.7)
    feed(detector, [(i * 100, sample("A", 0.8)) for i in range(5)])
    detector.config.confidence_threshold = 0.9
    assert detector.on_sample(sample("A", 0.8), 500) is None
    assert detector.phase is DetectorPhase.IDLE


def test_delay_change_applies_to_pending_streak():
    detector = make_detector(delay_ms=2000)
    feed(detector, [(i * 100, sample("A")) for i in range(10)])
    detector.config.commit_delay_ms = 500
    assert detector.on_sample(sample("A"), 1300) is None
    assert detector.on_sample(sample("A"), 1400) == "A"


def test_reset_returns_to_idle():
    detector = make_detector()
    feed(detector, [(i * 100, sample("A")) for i in range(12)])
    detector.reset()
    assert detector.phase is DetectorPhase.IDLE
    assert detector.state.streak_count == 0
    assert detector.state.streak_anchor_time is None
