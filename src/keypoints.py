import numpy as np
import mediapipe as mp

mp_hands = mp.solutions.hands

# number of values per frame (one hand, 21 landmarks, xyz)
NUM_HAND_LANDMARKS = 21
KEYPOINT_VECTOR_LENGTH = NUM_HAND_LANDMARKS * 3


def _landmark_array(hand_landmarks):
    if not hand_landmarks:
        return np.zeros((NUM_HAND_LANDMARKS, 3), dtype=np.float32)
    return np.array([[lmk.x, lmk.y, lmk.z] for lmk in hand_landmarks.landmark], dtype=np.float32)


def _normalize(coords):
    # Letters depend on hand shape, not where the hand sits in the frame.
    wrist = coords[mp_hands.HandLandmark.WRIST.value]
    coords = coords - wrist
    scale = np.max(np.abs(coords))
    if not np.isfinite(scale) or scale < 1e-6:
        return coords
    return coords / scale


def extract_keypoints(hand_landmarks):
    coords = _landmark_array(hand_landmarks)
    if hand_landmarks:
        coords = _normalize(coords)
    return coords.flatten().astype(np.float32)
