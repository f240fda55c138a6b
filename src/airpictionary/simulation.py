"""
Simulation Module - Headless Rounds
===================================
Plays a complete round on a virtual clock: a scripted "player" adds a
random stroke every few seconds and the mock recognizer guesses. Useful
for checking timing and outcomes without a window or an API key.
"""

import logging
import random
from typing import Optional

from airpictionary.arbitration import GuessArbitrationLoop, RoundOutcome
from airpictionary.canvas import Canvas
from airpictionary.recognition import MockGuessGenerator, RecognitionClient
from airpictionary.scheduling import FrameScheduler, Timer
from airpictionary.sketch_processor import SketchProcessor
from airpictionary.words import WordCatalog

logger = logging.getLogger(__name__)


def _scribble(canvas: Canvas, rng: random.Random, points: int = 8):
    x, y = rng.randrange(canvas.width), rng.randrange(canvas.height)
    canvas.start_stroke((x, y))
    for _ in range(points):
        x = min(canvas.width - 1, max(0, x + rng.randint(-40, 40)))
        y = min(canvas.height - 1, max(0, y + rng.randint(-40, 40)))
        canvas.continue_stroke((x, y))
    canvas.end_stroke()


def simulate_round(
    duration: int = 120,
    stroke_interval: float = 3.0,
    seed: Optional[int] = None,
    catalog: Optional[WordCatalog] = None,
    recognizer: Optional[RecognitionClient] = None
) -> RoundOutcome:
    """
    Run one round to completion on a virtual clock.

    Args:
        duration: Round length in seconds
        stroke_interval: Virtual seconds between scripted strokes
        seed: Seed for word choice, strokes and mock guesses
        catalog: Word catalog (built-in words by default)
        recognizer: Recognition client (mock guesser on the virtual clock by default)

    Returns:
        The round outcome
    """
    rng = random.Random(seed)
    scheduler = FrameScheduler()
    catalog = catalog or WordCatalog(rng=rng)
    recognizer = recognizer or RecognitionClient(
        api_key=None,
        mock=MockGuessGenerator(rng=rng),
        clock=scheduler.now
    )

    canvas = Canvas(width=320, height=240)
    processor = SketchProcessor(target_size=(128, 128))
    loop = GuessArbitrationLoop(
        catalog, recognizer, scheduler,
        duration=duration,
        snapshot_provider=lambda: processor.encode(canvas.get_sketch_image())
    )
    canvas.add_listener(loop.drawing_updated)

    strokes = Timer(scheduler)

    def draw():
        if loop.state.is_terminal:
            return
        _scribble(canvas, rng)
        strokes.start(stroke_interval, draw)

    loop.start()
    strokes.start(stroke_interval, draw)
    scheduler.run_until_idle(limit=duration + stroke_interval + 1)
    strokes.cancel()

    return loop.outcome or loop.abandon()
