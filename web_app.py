import logging
import os
import sys
import threading
import time
from pathlib import Path

import cv2
from flask import Flask, Response, jsonify, request

# Paths
ROOT_DIR = Path(__file__).resolve().parent
SRC_DIR = ROOT_DIR / "src"
# Ensure local src/ modules (config, detector, etc.) are importable when running from repo root.
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from camera import Camera
from classifier import load_classifier
from config import MODEL_SOURCE, SAMPLE_INTERVAL_MS
from errors import ModelError, SettingsError
from session import Sampler, TypingSession
from utils import draw_landmarks, draw_status

logger = logging.getLogger(__name__)

# Backend-only Flask app.
app = Flask(__name__)

camera = Camera()
session = TypingSession()
sampler = Sampler(session, camera, interval_ms=SAMPLE_INTERVAL_MS)
# Serializes start/stop/model swaps coming from concurrent requests.
control_lock = threading.Lock()


def settings_payload():
    config = session.config
    return {
        "confidence_threshold": config.confidence_threshold,
        "commit_delay_seconds": config.commit_delay_ms / 1000,
        "required_stable_count": config.required_stable_count,
    }


def error(message, status=400):
    return jsonify({"error": message}), status


def generate_frames():
    """Stream camera frames with the current prediction overlaid, as MJPEG."""
    while camera.is_running:
        frame = camera.latest_frame()
        if frame is None:
            time.sleep(0.01)
            continue

        classifier = session.classifier
        if classifier is not None:
            frame = draw_landmarks(frame, classifier.last_hand_landmarks)
        latest = session.latest
        draw_status(
            frame,
            latest.letter if latest else None,
            latest.confidence if latest else 0.0,
            session.output.text,
        )

        ok, buffer = cv2.imencode(".jpg", frame)
        if not ok:
            continue
        jpg_bytes = buffer.tobytes()
        yield (
            b"--frame\r\n"
            b"Content-Type: image/jpeg\r\n\r\n" + jpg_bytes + b"\r\n"
        )
        time.sleep(SAMPLE_INTERVAL_MS / 1000.0 / 2)


@app.route("/")
def index():
    return (
        "Backend is running. POST /start and /load_model, then watch /video_feed "
        "and read /output.",
        200,
    )


@app.route("/video_feed")
def video_feed():
    if not camera.is_running:
        return error("Camera is not running", 409)
    return Response(
        generate_frames(), mimetype="multipart/x-mixed-replace; boundary=frame"
    )


@app.route("/start", methods=["POST"])
def start():
    with control_lock:
        if not camera.start():
            return error("Could not access camera", 500)
        looping = sampler.start_if_ready()
    return jsonify({"camera": "started", "predicting": looping})


@app.route("/stop", methods=["POST"])
def stop():
    with control_lock:
        sampler.stop()
        camera.stop()
    return jsonify({"camera": "stopped"})


@app.route("/load_model", methods=["POST"])
def load_model():
    data = request.get_json(silent=True) or {}
    source = data.get("url") or MODEL_SOURCE
    try:
        classifier = load_classifier(source)
    except ModelError as exc:
        logger.error("Error loading model: %s", exc)
        return error(str(exc))

    with control_lock:
        previous = session.classifier
        sampler.stop()
        session.classifier = classifier
        if previous is not None:
            previous.close()
        looping = sampler.start_if_ready()
    return jsonify({"classes": classifier.num_classes, "labels": classifier.labels, "predicting": looping})


@app.route("/settings", methods=["GET", "POST"])
def settings():
    if request.method == "POST":
        data = request.get_json(silent=True) or {}
        try:
            if "confidence_threshold" in data:
                session.set_confidence_threshold(data["confidence_threshold"])
            if "commit_delay_seconds" in data:
                session.set_commit_delay_seconds(data["commit_delay_seconds"])
        except (SettingsError, TypeError, ValueError) as exc:
            return error(str(exc))
    return jsonify(settings_payload())


@app.route("/predictions")
def predictions():
    latest = session.latest
    if latest is None:
        return jsonify({"letter": None, "confidence": None, "predictions": []})
    return jsonify({
        "letter": latest.letter,
        "confidence": latest.confidence,
        "predictions": [{"label": label, "probability": p} for label, p in latest.ranked],
    })


@app.route("/output")
def output():
    return jsonify({"text": session.output.text})


@app.route("/output/clear", methods=["POST"])
def clear_output():
    session.output.clear()
    return jsonify({"text": ""})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.getenv("PORT", "5000"))
    app.run(host="0.0.0.0", port=port, debug=False, threaded=True)
