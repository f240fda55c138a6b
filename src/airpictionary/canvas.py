"""
Canvas Module - Pictionary Drawing Board
========================================
Stroke-based drawing surface for the game. Every finished change
(a stroke ends, an undo, a clear) is reported to listeners so the round
loop can schedule a fresh AI guess.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np

Point = Tuple[int, int]


@dataclass
class Stroke:
    """
    A single stroke on the canvas.

    Attributes:
        points: (x, y) points in the stroke
        thickness: Line thickness in pixels
        timestamp: When the stroke was started
    """
    points: List[Point] = field(default_factory=list)
    thickness: int = 6
    timestamp: float = field(default_factory=time.time)

    def add_point(self, point: Point):
        self.points.append(point)

    def is_empty(self) -> bool:
        return len(self.points) == 0


class Canvas:
    """
    Drawing canvas holding white strokes on a transparent layer.

    Listeners registered with ``add_listener`` are called after each
    completed edit, never for every pointer move.
    """

    STROKE_COLOR = (255, 255, 255)

    def __init__(self, width: int = 960, height: int = 540, thickness: int = 6):
        """
        Initialize the canvas.

        Args:
            width: Canvas width in pixels
            height: Canvas height in pixels
            thickness: Brush thickness for new strokes
        """
        self.width = width
        self.height = height
        self.thickness = thickness

        self._strokes: List[Stroke] = []
        self._current_stroke: Optional[Stroke] = None
        self._listeners: List[Callable[[], None]] = []

    def add_listener(self, listener: Callable[[], None]):
        """Register a callback for completed edits."""
        self._listeners.append(listener)

    def _changed(self):
        for listener in self._listeners:
            listener()

    def start_stroke(self, position: Point):
        """Start a new stroke at the given position."""
        self._current_stroke = Stroke(points=[position], thickness=self.thickness)

    def continue_stroke(self, position: Point):
        """Extend the current stroke, starting one if needed."""
        if self._current_stroke is None:
            self.start_stroke(position)
            return
        if self._current_stroke.points[-1] != position:
            self._current_stroke.add_point(position)

    def end_stroke(self):
        """Finish the current stroke and notify listeners."""
        stroke = self._current_stroke
        self._current_stroke = None
        if stroke and not stroke.is_empty():
            self._strokes.append(stroke)
            self._changed()

    @property
    def is_drawing(self) -> bool:
        return self._current_stroke is not None

    def undo(self) -> bool:
        """
        Remove the last stroke.

        Returns:
            True if a stroke was removed
        """
        if not self._strokes:
            return False
        self._strokes.pop()
        self._changed()
        return True

    def clear(self):
        """Remove all strokes."""
        had_content = bool(self._strokes)
        self._strokes.clear()
        self._current_stroke = None
        if had_content:
            self._changed()

    def has_content(self) -> bool:
        return bool(self._strokes)

    def get_stroke_count(self) -> int:
        return len(self._strokes)

    def _draw_strokes(self, image: np.ndarray, color, include_current: bool):
        strokes = list(self._strokes)
        if include_current and self._current_stroke:
            strokes.append(self._current_stroke)

        for stroke in strokes:
            if len(stroke.points) == 1:
                cv2.circle(image, stroke.points[0], stroke.thickness // 2, color, -1)
                continue
            for p1, p2 in zip(stroke.points, stroke.points[1:]):
                cv2.line(image, p1, p2, color, stroke.thickness)
                cv2.circle(image, p2, stroke.thickness // 2, color, -1)

    def get_sketch_image(self) -> np.ndarray:
        """
        Get the finished strokes for recognition.

        Returns:
            Grayscale image, white strokes on black
        """
        sketch = np.zeros((self.height, self.width), dtype=np.uint8)
        self._draw_strokes(sketch, 255, include_current=False)
        return sketch

    def overlay_on_frame(self, frame: np.ndarray, alpha: float = 0.9) -> np.ndarray:
        """
        Draw all strokes, including the one in progress, over a BGR frame.

        Args:
            frame: BGR background frame of the canvas size
            alpha: Opacity of the strokes (0-1)

        Returns:
            New frame with the drawing blended in
        """
        layer = frame.copy()
        self._draw_strokes(layer, self.STROKE_COLOR, include_current=True)
        return cv2.addWeighted(layer, alpha, frame, 1 - alpha, 0)
