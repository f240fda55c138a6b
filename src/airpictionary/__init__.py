# Air Pictionary - Draw a Word, Let the AI Guess It
# Author: Air Pictionary Team
# Version: 1.0.0

"""
Core modules for the Air Pictionary game:
- words: Word catalog and random selection
- matcher: Guess vs. target word matching
- recognition: AI drawing guesses (remote backends + mock)
- scheduling: Cancellable timers and background work
- arbitration: Round timer and guess loop
- storage: Onboarding flag and recent words
- canvas: Drawing board
- sketch_processor: Drawing snapshots for recognition
- gestures: Landmark gesture classifiers
- camera: Camera permission and live background
- simulation: Headless rounds on a virtual clock
- ui: Main application interface
"""

__version__ = "1.0.0"
__author__ = "Air Pictionary Team"
