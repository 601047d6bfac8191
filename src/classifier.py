"""Hand-sign letter classifier: MediaPipe hand landmarks fed to a torch model."""

import io
import json
import logging
import os
import pickle
from typing import List, Tuple

import cv2
import requests
import torch

from config import (
    LABEL_MAP_FILENAME,
    MIN_DETECTION_CONFIDENCE,
    MODEL_DOWNLOAD_TIMEOUT_SECONDS,
    MODEL_FILENAME,
)
from errors import ModelError
from keypoints import KEYPOINT_VECTOR_LENGTH, extract_keypoints, mp_hands
from model import LetterClassifier

logger = logging.getLogger(__name__)

DEVICE = torch.device("cuda" if torch.cuda.is_available() else "cpu")


def _is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def _read_bytes(source: str, filename: str) -> bytes:
    """Fetch ``filename`` from a local directory or an http(s) URL prefix."""
    if _is_url(source):
        url = source if source.endswith("/") else source + "/"
        url += filename
        try:
            response = requests.get(url, timeout=MODEL_DOWNLOAD_TIMEOUT_SECONDS)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ModelError(f"Could not download {url}: {exc}") from exc
        if not response.content:
            raise ModelError(f"Empty response from {url}")
        return response.content

    path = os.path.join(source, filename)
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise ModelError(f"Could not read {path}: {exc}") from exc


def _parse_label_map(raw: bytes) -> List[str]:
    try:
        label_map = json.loads(raw)
        labels = [label_map[k] for k in sorted(label_map.keys(), key=int)]
    except (ValueError, TypeError, AttributeError) as exc:
        raise ModelError(f"Invalid label map: {exc}") from exc

    for label in labels:
        if not isinstance(label, str) or not label:
            raise ModelError(f"Invalid label map: label {label!r} is not a non-empty string")
    if len(set(labels)) != len(labels):
        raise ModelError("Invalid label map: duplicate labels")
    return labels


class SignClassifier:
    """
    Classifier oracle for the typing session.

    ``classify`` returns one (label, probability) pair per known letter, in
    label-map order. When no hand is visible every probability is 0.0.
    """

    def __init__(self, model, labels, min_detection_confidence=MIN_DETECTION_CONFIDENCE):
        self.model = model
        self.labels = list(labels)
        self.hands = mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_detection_confidence,
        )
        self.last_hand_landmarks = None

    @property
    def num_classes(self) -> int:
        return len(self.labels)

    def classify(self, frame) -> List[Tuple[str, float]]:
        try:
            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            results = self.hands.process(rgb)
        except Exception as exc:  # noqa: BLE001
            raise ModelError(f"Hand tracking failed: {exc}") from exc

        if not results.multi_hand_landmarks:
            self.last_hand_landmarks = None
            return [(label, 0.0) for label in self.labels]

        hand = results.multi_hand_landmarks[0]
        self.last_hand_landmarks = hand
        keypoints = extract_keypoints(hand)

        try:
            x = torch.tensor(keypoints, dtype=torch.float32).unsqueeze(0).to(DEVICE)
            with torch.no_grad():
                probs = torch.softmax(self.model(x), dim=1)[0]
        except RuntimeError as exc:
            raise ModelError(f"Inference failed: {exc}") from exc

        return [(label, float(p)) for label, p in zip(self.labels, probs.tolist())]

    def close(self):
        self.hands.close()


def load_classifier(source: str) -> SignClassifier:
    """
    Load weights and labels from ``source`` (directory or URL prefix).

    Raises ModelError when anything is missing or does not fit together.
    """
    source = (source or "").strip()
    if not source:
        raise ModelError("Please provide a model directory or URL")

    labels = _parse_label_map(_read_bytes(source, LABEL_MAP_FILENAME))
    if not labels:
        raise ModelError("Label map is empty")

    weights = _read_bytes(source, MODEL_FILENAME)
    model = LetterClassifier(input_size=KEYPOINT_VECTOR_LENGTH, num_classes=len(labels)).to(DEVICE)
    try:
        state_dict = torch.load(io.BytesIO(weights), map_location=DEVICE, weights_only=True)
        model.load_state_dict(state_dict)
    except (RuntimeError, ValueError, KeyError, EOFError, pickle.UnpicklingError) as exc:
        raise ModelError(f"Invalid model weights: {exc}") from exc
    model.eval()

    logger.info("Model loaded: %d classes %s", len(labels), labels)
    return SignClassifier(model, labels)
