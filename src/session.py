"""
Typing session: wires the classifier, the stability detector and the typed
output together, plus the fixed-interval sampler thread that drives it.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from config import MAX_COMMIT_DELAY_MS, SAMPLE_INTERVAL_MS
from detector import DetectorConfig, StabilityDetector, rank_predictions
from errors import ModelError, SettingsError
from typed_output import TypedOutput

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class PredictionSnapshot:
    """What the classifier said on the latest tick, for display."""
    letter: str
    confidence: float
    ranked: List[Tuple[str, float]] = field(default_factory=list)


class TypingSession:
    """
    Owns the per-session detector state.

    Usage:
        session = TypingSession(classifier=load_classifier("models/"))
        session.tick(frame)
        print(session.output.text)
    """

    def __init__(self, classifier=None, output: Optional[TypedOutput] = None,
                 config: Optional[DetectorConfig] = None):
        self.classifier = classifier
        self.output = output if output is not None else TypedOutput()
        self.detector = StabilityDetector(config)
        self.latest: Optional[PredictionSnapshot] = None

    @property
    def config(self) -> DetectorConfig:
        return self.detector.config

    def set_confidence_threshold(self, value):
        value = float(value)
        if not 0.0 <= value <= 1.0:
            raise SettingsError(f"Confidence threshold must be within [0, 1], got {value}")
        self.config.confidence_threshold = value

    def set_commit_delay_seconds(self, seconds):
        seconds = float(seconds)
        if not math.isfinite(seconds) or not 0 <= seconds * 1000 <= MAX_COMMIT_DELAY_MS:
            raise SettingsError(
                f"Commit delay must be within [0, {MAX_COMMIT_DELAY_MS / 1000:.1f}] s, got {seconds}"
            )
        self.config.commit_delay_ms = int(round(seconds * 1000))

    def tick(self, frame, now: Optional[float] = None) -> Optional[str]:
        """Classify one frame and feed the detector. Returns the typed letter, if any."""
        if self.classifier is None:
            return None

        try:
            sample = self.classifier.classify(frame)
        except ModelError as exc:
            # Skipped ticks leave the detector untouched.
            logger.error("Prediction error: %s", exc)
            return None

        ranked = rank_predictions(sample)
        self.latest = PredictionSnapshot(letter=ranked[0][0], confidence=ranked[0][1], ranked=ranked)

        committed = self.detector.on_sample(sample, monotonic_ms() if now is None else now)
        if committed is not None:
            self.output.append(committed)
        return committed

    def discard(self):
        """Drop in-flight detector state; nothing pending is typed."""
        self.detector.reset()
        self.latest = None


class Sampler:
    """
    Calls ``session.tick`` every ``interval_ms`` with the newest camera frame.

    Runs only while the frame source is live and a classifier is loaded.
    Ticks run on one background thread, so they never overlap.
    """

    def __init__(self, session: TypingSession, frame_source, interval_ms: int = SAMPLE_INTERVAL_MS):
        self.session = session
        self.frame_source = frame_source
        self.interval_ms = interval_ms
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start_if_ready(self) -> bool:
        if not self.frame_source.is_running or self.session.classifier is None:
            return False
        # Restart so a newly loaded model takes over from a clean loop.
        self._halt()
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="sampler", daemon=True)
        self._thread.start()
        logger.info("Prediction loop started (every %d ms)", self.interval_ms)
        return True

    def stop(self):
        self._halt()
        self.session.discard()

    def _halt(self):
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None

    def _run(self):
        interval = self.interval_ms / 1000.0
        # Fixed rate: classification time does not stretch the period.
        next_tick = time.monotonic() + interval
        while not self._stop_event.wait(max(0.0, next_tick - time.monotonic())):
            next_tick = max(next_tick + interval, time.monotonic())
            if not self.frame_source.is_running:
                continue
            frame = self.frame_source.latest_frame()
            if frame is None:
                continue
            try:
                self.session.tick(frame)
            except Exception:  # noqa: BLE001
                logger.exception("Sampler tick failed")
