# src/utils.py
import cv2
import mediapipe as mp

mp_hands = mp.solutions.hands
mp_drawing = mp.solutions.drawing_utils

FONT = cv2.FONT_HERSHEY_SIMPLEX


# draw the tracked hand, if any
def draw_landmarks(frame, hand_landmarks):
    if hand_landmarks:
        mp_drawing.draw_landmarks(
            frame, hand_landmarks, mp_hands.HAND_CONNECTIONS,
            mp_drawing.DrawingSpec(color=(245,117,66), thickness=2, circle_radius=4),
            mp_drawing.DrawingSpec(color=(245,66,230), thickness=2)
        )
    return frame


# current letter, its confidence and the typed text
def draw_status(frame, letter, confidence, typed):
    h, w = frame.shape[:2]
    overlay = frame.copy()
    cv2.rectangle(overlay, (0, h - 90), (w, h), (20, 20, 20), -1)
    cv2.addWeighted(overlay, 0.7, frame, 0.3, 0, frame)

    if letter is None:
        cv2.putText(frame, "Waiting for signs...", (10, h - 60), FONT, 0.6, (150, 150, 150), 1)
    else:
        color = (0, 255, 0) if confidence >= 0.5 else (0, 200, 255)
        cv2.putText(frame, f"{letter}  {confidence * 100:.1f}%", (10, h - 55), FONT, 0.9, color, 2)

    if len(typed) > 40:
        typed = "..." + typed[-37:]
    cv2.putText(frame, typed, (10, h - 20), FONT, 0.7, (255, 255, 255), 2)
    return frame
