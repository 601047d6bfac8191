"""Central configuration for the sign typer."""

import os

from dotenv import load_dotenv

# Load environment variables from a .env file if available.
load_dotenv()

# ------------------------ STABILITY DETECTOR ------------------------
# Override these with environment variables if you need different values.
CONF_THRESHOLD = float(os.getenv("CONF_THRESHOLD", "0.7"))
# Consecutive qualifying samples before a streak counts as stable.
REQUIRED_STABLE_COUNT = 10
# How long a stable streak must be held before the letter is typed (ms).
COMMIT_DELAY_MS = int(os.getenv("COMMIT_DELAY_MS", "2000"))
MAX_COMMIT_DELAY_MS = 5000

# ------------------------ SAMPLER ------------------------
SAMPLE_INTERVAL_MS = int(os.getenv("SAMPLE_INTERVAL_MS", "100"))

# ------------------------ CLASSIFIER ------------------------
# Local directory or http(s) URL prefix holding the weights and label map.
MODEL_SOURCE = os.getenv("MODEL_SOURCE", "models/")
MODEL_FILENAME = "classifier.pth"
LABEL_MAP_FILENAME = "label_map.json"
MODEL_DOWNLOAD_TIMEOUT_SECONDS = float(os.getenv("MODEL_DOWNLOAD_TIMEOUT_SECONDS", "10"))
MIN_DETECTION_CONFIDENCE = float(os.getenv("MIN_DETECTION_CONFIDENCE", "0.5"))

# ------------------------ CAMERA ------------------------
CAMERA_INDEX = int(os.getenv("CAMERA_INDEX", "0"))
FRAME_WIDTH = int(os.getenv("FRAME_WIDTH", "640"))
FRAME_HEIGHT = int(os.getenv("FRAME_HEIGHT", "480"))
