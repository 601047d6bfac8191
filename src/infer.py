# src/infer.py
import logging
import time

import cv2

from classifier import load_classifier
from config import CAMERA_INDEX, FRAME_HEIGHT, FRAME_WIDTH, MODEL_SOURCE, SAMPLE_INTERVAL_MS
from errors import ModelError, SettingsError
from session import TypingSession
from utils import draw_landmarks, draw_status

logger = logging.getLogger(__name__)

THRESHOLD_STEP = 0.1
DELAY_STEP_SECONDS = 0.5


def adjust_settings(session, key):
    """Apply a settings hotkey. Returns True if the key was a settings key."""
    config = session.config
    try:
        if key in (ord('+'), ord('=')):
            session.set_confidence_threshold(round(config.confidence_threshold + THRESHOLD_STEP, 1))
        elif key == ord('-'):
            session.set_confidence_threshold(round(config.confidence_threshold - THRESHOLD_STEP, 1))
        elif key == ord(']'):
            session.set_commit_delay_seconds(config.commit_delay_ms / 1000 + DELAY_STEP_SECONDS)
        elif key == ord('['):
            session.set_commit_delay_seconds(config.commit_delay_ms / 1000 - DELAY_STEP_SECONDS)
        else:
            return False
    except SettingsError as exc:
        print(f"Setting unchanged: {exc}")
        return True

    print(
        f"Threshold: {config.confidence_threshold:.1f}  "
        f"Delay: {config.commit_delay_ms / 1000:.1f}s"
    )
    return True


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        classifier = load_classifier(MODEL_SOURCE)
    except ModelError as exc:
        print(f"Error loading model: {exc}")
        return
    session = TypingSession(classifier=classifier)

    cap = cv2.VideoCapture(CAMERA_INDEX)
    try:
        if not cap.isOpened():
            print("Error: Could not access camera")
            return
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, FRAME_WIDTH)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, FRAME_HEIGHT)

        print("Press 'q' to quit, 'c' to clear, +/- threshold, [/] delay")
        interval = SAMPLE_INTERVAL_MS / 1000.0
        next_tick = time.monotonic()
        while cap.isOpened():
            ret, frame = cap.read()
            if not ret:
                continue
            frame = cv2.flip(frame, 1)

            # Sample at a fixed rate, independent of the camera frame rate.
            if time.monotonic() >= next_tick:
                next_tick = time.monotonic() + interval
                letter = session.tick(frame)
                if letter is not None:
                    print(f"Typed: {letter}  ->  {session.output.text}")

            frame = draw_landmarks(frame, classifier.last_hand_landmarks)
            latest = session.latest
            draw_status(
                frame,
                latest.letter if latest else None,
                latest.confidence if latest else 0.0,
                session.output.text,
            )
            cv2.imshow("Sign Typer", frame)

            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            if key == ord('c'):
                session.output.clear()
            else:
                adjust_settings(session, key)
    finally:
        session.discard()
        classifier.close()
        cap.release()
        cv2.destroyAllWindows()


if __name__ == "__main__":
    main()
