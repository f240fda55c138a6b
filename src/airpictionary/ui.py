"""
UI Module - Air Pictionary Play Surface
=======================================
OpenCV window for playing rounds: draw with the mouse (over the live
camera feed if one is enabled), watch the AI guesses arrive and see the
result when the round ends.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from airpictionary import __version__
from airpictionary.arbitration import Guess, GuessArbitrationLoop, RoundOutcome, RoundResult
from airpictionary.camera import Camera, request_permission
from airpictionary.canvas import Canvas
from airpictionary.config import Config
from airpictionary.gestures import Gesture, detect_gesture_type, fingertip_position, map_to_screen, process_frame
from airpictionary.recognition import RecognitionClient, RecognizerBackend, create_client
from airpictionary.scheduling import FrameScheduler
from airpictionary.simulation import simulate_round
from airpictionary.sketch_processor import SketchProcessor
from airpictionary.storage import Storage
from airpictionary.words import WordCatalog

logger = logging.getLogger(__name__)

WINDOW_NAME = "Air Pictionary"


def format_time(seconds: int) -> str:
    """Format seconds as m:ss."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


class PictionaryApp:
    """
    Main application class: one window, one round at a time.

    The frame loop pumps the scheduler, so every timer and recognition
    callback runs on the UI thread.
    """

    WIDTH = 960
    HEIGHT = 540

    # UI Colors (BGR)
    UI_BG_COLOR = (30, 30, 30)
    UI_ACCENT_COLOR = (0, 200, 255)
    UI_TEXT_COLOR = (255, 255, 255)
    UI_SUCCESS_COLOR = (0, 255, 0)
    UI_ERROR_COLOR = (0, 0, 255)
    UI_MUTED_COLOR = (150, 150, 150)

    def __init__(
        self,
        recognizer: RecognitionClient,
        catalog: Optional[WordCatalog] = None,
        storage: Optional[Storage] = None,
        camera_id: Optional[int] = None,
        duration: Optional[int] = None
    ):
        """
        Initialize the application.

        Args:
            recognizer: Client asked for AI guesses
            catalog: Word catalog (built-in words by default)
            storage: Onboarding flag and recent words store
            camera_id: Camera for a live background; None draws on a plain board
            duration: Round length in seconds
        """
        self.recognizer = recognizer
        self.catalog = catalog or WordCatalog()
        self.storage = storage or Storage()
        self.duration = duration
        self.scheduler = FrameScheduler(clock=time.monotonic)

        self.camera: Optional[Camera] = None
        if camera_id is not None:
            permission = request_permission(camera_id)
            if permission.granted:
                self.camera = Camera(camera_id, self.WIDTH, self.HEIGHT)
            else:
                logger.warning("Camera unavailable, drawing on a plain board")

        self.canvas = Canvas(self.WIDTH, self.HEIGHT)
        self.canvas.add_listener(self._on_canvas_changed)
        self.sketch_processor = SketchProcessor()

        self.loop: Optional[GuessArbitrationLoop] = None
        self._outcome: Optional[RoundOutcome] = None
        self._status = ""
        self._mouse_down = False
        self._running = False

    # Round lifecycle

    def new_round(self):
        """Abandon any active round and start a fresh one."""
        if self.loop is not None:
            self.loop.abandon()

        self.canvas.clear()
        self._outcome = None
        self._status = ""

        self.loop = GuessArbitrationLoop(
            self.catalog,
            self.recognizer,
            self.scheduler,
            duration=self.duration,
            snapshot_provider=self._snapshot,
            on_guesses=self._on_guesses,
            on_outcome=self._on_outcome
        )
        self.loop.start(excluding=self.storage.get_recent_words())

    def _snapshot(self) -> str:
        return self.sketch_processor.encode(self.canvas.get_sketch_image())

    def _on_canvas_changed(self):
        if self.loop is not None and self.canvas.has_content():
            self.loop.drawing_updated()

    def _on_guesses(self, guesses: List[Guess]):
        if any(g.is_correct for g in guesses):
            self._status = "Got it!"
        else:
            self._status = f"Not {guesses[-1].text}... keep drawing"

    def _on_outcome(self, outcome: RoundOutcome):
        self._outcome = outcome
        recent = self.storage.get_recent_words()
        self.storage.save_recent_words(recent + [outcome.word])

    # Input

    def _on_mouse(self, event, x, y, flags, param):
        if self.loop is None or self.loop.state.is_terminal:
            return

        if event == cv2.EVENT_LBUTTONDOWN:
            self._mouse_down = True
            self.canvas.start_stroke((x, y))
        elif event == cv2.EVENT_MOUSEMOVE and self._mouse_down:
            self.canvas.continue_stroke((x, y))
        elif event == cv2.EVENT_LBUTTONUP:
            self._mouse_down = False
            self.canvas.end_stroke()

    def _process_hand(self, frame: np.ndarray):
        """Draw with the index fingertip while pointing."""
        landmarks = process_frame(frame)
        gesture = detect_gesture_type(landmarks)
        tip = fingertip_position(landmarks)

        if gesture == Gesture.POINT and tip and not self.loop.state.is_terminal:
            self.canvas.continue_stroke(map_to_screen(tip[0], tip[1], self.WIDTH, self.HEIGHT, mirror=False))
        elif self.canvas.is_drawing and not self._mouse_down:
            self.canvas.end_stroke()

    def _handle_keyboard(self, key: int) -> bool:
        """
        Handle keyboard input.

        Returns:
            False if should quit, True otherwise
        """
        if key == ord('q') or key == 27:  # Q or Escape
            return False

        elif key == ord('c'):
            self.canvas.clear()

        elif key == ord('u'):
            self.canvas.undo()

        elif key == ord('n'):
            self.new_round()

        return True

    # Rendering

    def _draw_ui(self, frame: np.ndarray) -> np.ndarray:
        h, w = frame.shape[:2]
        current = self.loop.round

        # Top bar: timer and word prompt
        cv2.rectangle(frame, (0, 0), (w, 50), self.UI_BG_COLOR, -1)
        remaining = current.remaining_seconds
        timer_color = self.UI_ERROR_COLOR if remaining <= 10 else self.UI_SUCCESS_COLOR
        cv2.putText(
            frame, format_time(remaining),
            (10, 35), cv2.FONT_HERSHEY_SIMPLEX, 0.9, timer_color, 2
        )
        cv2.putText(
            frame, f"Draw this: {current.target_word.text}",
            (150, 35), cv2.FONT_HERSHEY_SIMPLEX, 0.8, self.UI_ACCENT_COLOR, 2
        )
        cv2.putText(
            frame, "[C] Clear  [U] Undo  [N] New  [Q] Quit",
            (w - 380, 32), cv2.FONT_HERSHEY_SIMPLEX, 0.5, self.UI_MUTED_COLOR, 1
        )

        # Guess panel (bottom)
        panel_top = h - 110
        cv2.rectangle(frame, (0, panel_top), (w, h), self.UI_BG_COLOR, -1)
        status = self._status or "Waiting for your drawing..."
        cv2.putText(
            frame, f"AI Guesses - {status}",
            (10, panel_top + 25), cv2.FONT_HERSHEY_SIMPLEX, 0.6, self.UI_TEXT_COLOR, 1
        )

        guesses = self.loop.guesses
        if not guesses:
            cv2.putText(
                frame, "No guesses yet",
                (10, panel_top + 60), cv2.FONT_HERSHEY_SIMPLEX, 0.6, self.UI_MUTED_COLOR, 1
            )
        for i, guess in enumerate(guesses):
            color = self.UI_SUCCESS_COLOR if guess.is_correct else self.UI_TEXT_COLOR
            marker = "[OK]" if guess.is_correct else "?"
            cv2.putText(
                frame, f"{marker} {guess.text}",
                (10 + i * 300, panel_top + 70), cv2.FONT_HERSHEY_SIMPLEX, 0.8, color, 2
            )

        return frame

    def _draw_results(self, frame: np.ndarray) -> np.ndarray:
        outcome = self._outcome
        if outcome is None or outcome.result is RoundResult.ABANDONED:
            return frame

        h, w = frame.shape[:2]
        x1, y1, x2, y2 = w // 2 - 220, h // 2 - 110, w // 2 + 220, h // 2 + 110
        cv2.rectangle(frame, (x1, y1), (x2, y2), self.UI_BG_COLOR, -1)
        cv2.rectangle(frame, (x1, y1), (x2, y2), self.UI_ACCENT_COLOR, 2)

        if outcome.success:
            title, color = "SUCCESS!", self.UI_SUCCESS_COLOR
            lines = [
                "AI guessed your drawing!",
                f"Time: {format_time(outcome.elapsed_seconds)}",
                f"AI attempts: {outcome.attempt_count}",
            ]
        else:
            title, color = "TIME'S UP", self.UI_ERROR_COLOR
            lines = [
                f"The word was: {outcome.word}",
                f"AI attempts: {outcome.attempt_count}",
            ]
        lines.append("[N] Play again   [Q] Quit")

        cv2.putText(frame, title, (x1 + 20, y1 + 45), cv2.FONT_HERSHEY_SIMPLEX, 1.2, color, 3)
        for i, line in enumerate(lines):
            cv2.putText(
                frame, line,
                (x1 + 20, y1 + 90 + i * 30), cv2.FONT_HERSHEY_SIMPLEX, 0.65, self.UI_TEXT_COLOR, 1
            )
        return frame

    def _background(self) -> np.ndarray:
        if self.camera is not None:
            frame = self.camera.get_frame()
            if frame is not None:
                return frame
        frame = np.zeros((self.HEIGHT, self.WIDTH, 3), dtype=np.uint8)
        frame[:] = (50, 50, 50)
        return frame

    def run(self):
        """Run the main application loop."""
        if not self.storage.is_onboarding_complete():
            print("\n" + "=" * 60)
            print("  Welcome to Air Pictionary!")
            print("  Draw the word on the board. The AI guesses while you draw;")
            print("  get it to say your word before the clock runs out.")
            print("=" * 60)
            self.storage.set_onboarding_complete()

        print("\nKeyboard:")
        print("  [C] Clear | [U] Undo | [N] New round | [Q] Quit")

        if self.camera is not None and not self.camera.start():
            self.camera = None

        self._running = True
        cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(WINDOW_NAME, self.WIDTH, self.HEIGHT)
        cv2.setMouseCallback(WINDOW_NAME, self._on_mouse)

        self.new_round()
        try:
            while self._running:
                self.scheduler.pump()

                frame = self._background()
                if self.camera is not None:
                    self._process_hand(frame)

                display = self.canvas.overlay_on_frame(frame)
                display = self._draw_ui(display)
                display = self._draw_results(display)
                cv2.imshow(WINDOW_NAME, display)

                key = cv2.waitKey(15) & 0xFF
                if not self._handle_keyboard(key):
                    break
        finally:
            self._running = False
            if self.loop is not None:
                self.loop.abandon()
            if self.camera is not None:
                self.camera.stop()
            cv2.destroyAllWindows()
            logger.info("Application closed")


def configure_logging(level: str = Config.LOG_LEVEL, log_file: Optional[Path] = None):
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Air Pictionary - draw a word, let the AI guess it")
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.add_argument('--camera', type=int, default=None, help='Camera device index for a live background')
    parser.add_argument('--mock', action='store_true', help='Use mock guesses (no API needed)')
    parser.add_argument('--backend', choices=[b.name.lower() for b in RecognizerBackend], default=None,
                        help='Recognition backend (default: RECOGNIZER_BACKEND)')
    parser.add_argument('--duration', type=int, default=None, help='Round length in seconds')
    parser.add_argument('--words', type=Path, default=None, help='JSON word list to use instead of the built-in one')
    parser.add_argument('--simulate', action='store_true', help='Play one headless round on a virtual clock')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for --simulate')
    parser.add_argument('--reset-data', action='store_true', help='Clear onboarding and recent words, then exit')
    parser.add_argument('--log-file', type=Path, default=None, help='Also write logs to this file')

    args = parser.parse_args(argv)
    configure_logging(log_file=args.log_file)

    catalog = WordCatalog.from_json(args.words) if args.words else WordCatalog()

    if args.reset_data:
        Storage().clear_all()
        return 0

    if args.simulate:
        outcome = simulate_round(
            duration=args.duration or Config.ROUND_DURATION_SEC,
            seed=args.seed,
            catalog=catalog if args.words else None
        )
        print(
            f"{outcome.result.value.upper()}: {outcome.word} {outcome.emoji} "
            f"in {format_time(outcome.elapsed_seconds)}, {outcome.attempt_count} AI guesses"
        )
        return 0

    backend = RecognizerBackend.from_name(args.backend) if args.backend else None
    recognizer = create_client(use_mock=args.mock, backend=backend)
    if recognizer.api_key is None:
        print("\n[NOTE] No API key set. The AI guesses are mocked.")
        print("[NOTE] Set OPENAI_API_KEY (or HF_TOKEN with RECOGNIZER_BACKEND=huggingface) in .env")

    app = PictionaryApp(
        recognizer=recognizer,
        catalog=catalog,
        camera_id=args.camera,
        duration=args.duration
    )
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
