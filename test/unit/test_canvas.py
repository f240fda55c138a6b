"""
Tests for the drawing canvas.
"""

import numpy as np

from airpictionary.canvas import Canvas


def draw_line(canvas, start=(10, 10), end=(60, 60)):
    canvas.start_stroke(start)
    canvas.continue_stroke(((start[0] + end[0]) // 2, (start[1] + end[1]) // 2))
    canvas.continue_stroke(end)
    canvas.end_stroke()


def test_listeners_fire_once_per_finished_stroke():
    canvas = Canvas(width=100, height=100)
    events = []
    canvas.add_listener(lambda: events.append("changed"))

    canvas.start_stroke((10, 10))
    canvas.continue_stroke((20, 20))
    assert canvas.is_drawing
    assert events == []

    canvas.end_stroke()
    assert not canvas.is_drawing
    assert events == ["changed"]
    assert canvas.get_stroke_count() == 1


def test_end_without_stroke_is_silent():
    canvas = Canvas(width=100, height=100)
    events = []
    canvas.add_listener(lambda: events.append("changed"))
    canvas.end_stroke()
    assert events == []


def test_undo_and_clear_notify():
    canvas = Canvas(width=100, height=100)
    draw_line(canvas)
    draw_line(canvas, (70, 10), (90, 40))

    events = []
    canvas.add_listener(lambda: events.append("changed"))

    assert canvas.undo()
    assert canvas.get_stroke_count() == 1
    canvas.clear()
    assert not canvas.has_content()
    assert not canvas.undo()
    canvas.clear()
    assert events == ["changed", "changed"]


def test_sketch_image_has_white_strokes_on_black():
    canvas = Canvas(width=100, height=80)
    assert canvas.get_sketch_image().shape == (80, 100)
    assert not canvas.get_sketch_image().any()

    draw_line(canvas)
    sketch = canvas.get_sketch_image()
    assert sketch.dtype == np.uint8
    assert sketch[35, 35] == 255
    assert sketch[75, 5] == 0


def test_sketch_excludes_stroke_in_progress():
    canvas = Canvas(width=100, height=100)
    canvas.start_stroke((10, 10))
    canvas.continue_stroke((50, 50))
    assert not canvas.get_sketch_image().any()


def test_overlay_keeps_frame_shape():
    canvas = Canvas(width=100, height=100)
    draw_line(canvas)
    frame = np.zeros((100, 100, 3), dtype=np.uint8)
    out = canvas.overlay_on_frame(frame)
    assert out.shape == frame.shape
    assert out[35, 35].sum() > 0
    assert not frame.any()
