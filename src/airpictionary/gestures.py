"""
Gestures Module - Landmark Gesture Classifiers
==============================================
Classifies pinch, point and fist gestures from the 21 MediaPipe-style hand
landmarks (normalized coordinates) and maps fingertip positions to the
screen.

No hand tracker is wired in yet: ``process_frame`` always reports that no
hand was found, so the play surface falls back to mouse drawing.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Sequence, Tuple

import numpy as np


class HandLandmark(IntEnum):
    """
    MediaPipe hand landmark indices.
    Reference: https://mediapipe.dev/images/mobile/hand_landmarks.png
    """
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


LANDMARK_COUNT = 21

# Thumb-index distance for a pinch (normalized coordinates)
PINCH_THRESHOLD = 0.05


@dataclass(frozen=True)
class Landmark:
    """One hand landmark in normalized coordinates (0-1)."""
    x: float
    y: float
    z: float = 0.0

    def distance_to(self, other: 'Landmark') -> float:
        """2D distance to another landmark."""
        return float(np.hypot(self.x - other.x, self.y - other.y))


Landmarks = Sequence[Landmark]


class Gesture(Enum):
    """Recognized gestures."""
    NONE = 'none'
    PINCH = 'pinch'
    POINT = 'point'
    FIST = 'fist'


@dataclass(frozen=True)
class GestureState:
    """Which gestures the current hand pose satisfies."""
    is_pinching: bool
    is_pointing: bool
    is_fist: bool
    confidence: float


def _complete(landmarks: Optional[Landmarks]) -> bool:
    return landmarks is not None and len(landmarks) >= LANDMARK_COUNT


def detect_pinch(landmarks: Optional[Landmarks]) -> bool:
    """Thumb tip and index tip touching."""
    if not _complete(landmarks):
        return False
    thumb_tip = landmarks[HandLandmark.THUMB_TIP]
    index_tip = landmarks[HandLandmark.INDEX_TIP]
    return thumb_tip.distance_to(index_tip) < PINCH_THRESHOLD


def detect_point(landmarks: Optional[Landmarks]) -> bool:
    """Index finger extended (tip above its middle joint)."""
    if not _complete(landmarks):
        return False
    return landmarks[HandLandmark.INDEX_TIP].y < landmarks[HandLandmark.INDEX_PIP].y


def detect_fist(landmarks: Optional[Landmarks]) -> bool:
    """All four fingertips curled below the wrist."""
    if not _complete(landmarks):
        return False
    wrist = landmarks[HandLandmark.WRIST]
    tips = (HandLandmark.INDEX_TIP, HandLandmark.MIDDLE_TIP, HandLandmark.RING_TIP, HandLandmark.PINKY_TIP)
    return all(landmarks[tip].y > wrist.y for tip in tips)


def fingertip_position(landmarks: Optional[Landmarks]) -> Optional[Tuple[float, float]]:
    """Normalized index fingertip position, used as the drawing cursor."""
    if not _complete(landmarks):
        return None
    tip = landmarks[HandLandmark.INDEX_TIP]
    return tip.x, tip.y


def map_to_screen(
    x: float,
    y: float,
    width: int,
    height: int,
    mirror: bool = True
) -> Tuple[int, int]:
    """
    Map normalized coordinates to pixels.

    Args:
        x: Normalized x (0-1)
        y: Normalized y (0-1)
        width: Screen width in pixels
        height: Screen height in pixels
        mirror: Flip horizontally, as for a front camera

    Returns:
        (px, py) pixel position
    """
    px = (1 - x) * width if mirror else x * width
    return int(px), int(y * height)


def gesture_state(landmarks: Optional[Landmarks]) -> GestureState:
    return GestureState(
        is_pinching=detect_pinch(landmarks),
        is_pointing=detect_point(landmarks),
        is_fist=detect_fist(landmarks),
        confidence=1.0 if _complete(landmarks) else 0.0
    )


def detect_gesture_type(landmarks: Optional[Landmarks]) -> Gesture:
    """
    Classify the hand pose. A fist wins over a pinch, and a pinch wins
    over a point.
    """
    if not _complete(landmarks):
        return Gesture.NONE
    if detect_fist(landmarks):
        return Gesture.FIST
    if detect_pinch(landmarks):
        return Gesture.PINCH
    if detect_point(landmarks):
        return Gesture.POINT
    return Gesture.NONE


def process_frame(frame: np.ndarray) -> Optional[Landmarks]:
    """Hand landmarks for a camera frame. Always None: no tracker is wired in."""
    return None
