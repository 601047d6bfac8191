"""
Stability detector: debounce per-frame letter predictions into typed letters.

A letter is committed once the same label has topped the classifier output,
at or above the confidence threshold, for ``required_stable_count``
consecutive samples and then kept its streak for ``commit_delay_ms`` more.
After a commit the state is cleared, so a held gesture has to build a new
streak before the same letter can be typed again.
"""

import enum
import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import Optional, Sequence, Tuple, List

from config import COMMIT_DELAY_MS, CONF_THRESHOLD, REQUIRED_STABLE_COUNT
from errors import InvalidInput

logger = logging.getLogger(__name__)

Prediction = Tuple[str, float]
Sample = Sequence[Prediction]


class DetectorPhase(enum.Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    STABLE_PENDING = "stable_pending"


@dataclass
class DetectorConfig:
    confidence_threshold: float = CONF_THRESHOLD
    required_stable_count: int = REQUIRED_STABLE_COUNT
    commit_delay_ms: int = COMMIT_DELAY_MS


@dataclass
class DetectorState:
    last_label: Optional[str] = None
    streak_count: int = 0
    streak_anchor_time: Optional[float] = None  # ms, set when the streak became stable


def _validate(sample: Sample) -> None:
    if not isinstance(sample, (list, tuple)):
        raise InvalidInput(f"sample must be a sequence of (label, probability), got {type(sample).__name__}")
    if not sample:
        raise InvalidInput("sample is empty")
    for entry in sample:
        if not isinstance(entry, tuple) or len(entry) != 2:
            raise InvalidInput(f"malformed prediction {entry!r}")
        label, probability = entry
        if not isinstance(label, str):
            raise InvalidInput(f"label must be a string, got {label!r}")
        if isinstance(probability, bool) or not isinstance(probability, Real):
            raise InvalidInput(f"probability for '{label}' is not a number: {probability!r}")
        if math.isnan(probability) or not 0.0 <= probability <= 1.0:
            raise InvalidInput(f"probability for '{label}' outside [0, 1]: {probability!r}")


def top_candidate(sample: Sample) -> Prediction:
    """Return the most probable entry; the earliest one wins a tie."""
    _validate(sample)
    best = sample[0]
    for entry in sample[1:]:
        if entry[1] > best[1]:
            best = entry
    return best


def rank_predictions(sample: Sample) -> List[Prediction]:
    """Predictions sorted by descending probability, input order kept on ties."""
    _validate(sample)
    return sorted(sample, key=lambda entry: entry[1], reverse=True)


class StabilityDetector:
    """
    Per-session state machine fed one classifier sample per tick.

    ``config`` may be mutated between calls (for example from a settings
    endpoint); the new values apply on the next ``on_sample`` call without
    touching the current streak.
    """

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config or DetectorConfig()
        self.state = DetectorState()

    @property
    def phase(self) -> DetectorPhase:
        if self.state.last_label is None:
            return DetectorPhase.IDLE
        if self.state.streak_anchor_time is None:
            return DetectorPhase.ACCUMULATING
        return DetectorPhase.STABLE_PENDING

    def reset(self) -> None:
        self.state.last_label = None
        self.state.streak_count = 0
        self.state.streak_anchor_time = None

    def on_sample(self, sample: Sample, now: float) -> Optional[str]:
        """
        Feed one sample taken at ``now`` (milliseconds, monotonic).

        Returns the committed letter, or None when nothing was typed on this
        tick. Raises InvalidInput for an empty or malformed sample, leaving
        the state as it was.
        """
        label, probability = top_candidate(sample)
        config = self.config
        state = self.state

        if probability < config.confidence_threshold:
            self.reset()
            return None

        if label == state.last_label:
            state.streak_count += 1
        else:
            if state.last_label is not None:
                logger.debug("Streak for '%s' broken by '%s'", state.last_label, label)
            state.last_label = label
            state.streak_count = 1
            state.streak_anchor_time = None

        if state.streak_count >= config.required_stable_count:
            if state.streak_anchor_time is None:
                state.streak_anchor_time = now
                logger.debug("Letter '%s' stable at %.0f ms", label, now)
            elif now - state.streak_anchor_time >= config.commit_delay_ms:
                logger.debug("Committing '%s' after %d samples", label, state.streak_count)
                self.reset()
                return label

        return None
