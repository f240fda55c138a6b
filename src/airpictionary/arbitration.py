"""
Arbitration Module - Round Timer and AI Guess Loop
==================================================
Runs one Pictionary round: counts down the clock, turns drawing updates
into debounced recognition requests, keeps the last few AI guesses and
decides how the round ends.

States:
    IDLE -> ACTIVE -> SUCCEEDED | TIMED_OUT | ABANDONED

At most one recognition request is in flight per round. Drawing that
settles while a request is out is sent as a single follow-up once the
response arrives, and every response that arrives while the round is
ACTIVE is applied.

Every transition out of ACTIVE cancels the countdown and the pending
recognition request together; after that no tick or late response can
touch the round.
"""

import itertools
import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Deque, Iterable, List, Optional

from airpictionary.config import GUESS_HISTORY_SIZE, Config
from airpictionary.exceptions import RoundStateError
from airpictionary.recognition import RecognitionClient, RecognitionResult
from airpictionary.scheduling import Scheduler, Timer
from airpictionary.words import Word, WordCatalog

logger = logging.getLogger(__name__)


class RoundState(Enum):
    IDLE = auto()
    ACTIVE = auto()
    SUCCEEDED = auto()
    TIMED_OUT = auto()
    ABANDONED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (RoundState.SUCCEEDED, RoundState.TIMED_OUT, RoundState.ABANDONED)


class RoundResult(Enum):
    SUCCESS = 'success'
    TIMEOUT = 'timeout'
    ABANDONED = 'abandoned'


_RESULT_FOR_STATE = {
    RoundState.SUCCEEDED: RoundResult.SUCCESS,
    RoundState.TIMED_OUT: RoundResult.TIMEOUT,
    RoundState.ABANDONED: RoundResult.ABANDONED,
}


@dataclass(frozen=True)
class Guess:
    """One AI guess as shown to the player."""
    text: str
    is_correct: bool
    observed_at: float


@dataclass
class Round:
    """
    State of a single round.

    Attributes:
        target_word: Word being drawn; fixed for the round
        start_time: Scheduler time the round started
        duration: Round length in ticks (seconds)
        remaining_seconds: Ticks left; never increases
        guess_history: Last few guesses, newest last
        active: False once the round has ended
        guesses_observed: Every guess received, including evicted ones
    """
    target_word: Word
    start_time: float
    duration: int
    remaining_seconds: int
    guess_history: Deque[Guess] = field(default_factory=lambda: deque(maxlen=GUESS_HISTORY_SIZE))
    active: bool = True
    guesses_observed: int = 0

    @property
    def elapsed_seconds(self) -> int:
        return self.duration - self.remaining_seconds


@dataclass(frozen=True)
class RoundOutcome:
    """Everything the results screen needs."""
    result: RoundResult
    word: str
    emoji: str
    elapsed_seconds: int
    attempt_count: int

    @property
    def success(self) -> bool:
        return self.result is RoundResult.SUCCESS


class GuessArbitrationLoop:
    """
    Owns one round from start to outcome.

    The countdown ticks every ``tick_interval`` seconds. Each drawing
    update restarts a ``debounce`` window; when the window elapses with no
    further updates, one recognition request is sent, or queued as a
    follow-up if another request is still out. A correct guess ends
    the round as a success, even if the clock runs out at the same instant.

    All callbacks arrive through the scheduler on the caller's thread.
    """

    def __init__(
        self,
        catalog: WordCatalog,
        recognizer: RecognitionClient,
        scheduler: Scheduler,
        duration: Optional[int] = None,
        tick_interval: Optional[float] = None,
        debounce: Optional[float] = None,
        api_key: Optional[str] = None,
        snapshot_provider: Optional[Callable[[], Any]] = None,
        on_guesses: Optional[Callable[[List[Guess]], None]] = None,
        on_outcome: Optional[Callable[[RoundOutcome], None]] = None
    ):
        """
        Initialize the loop.

        Args:
            catalog: Source of the target word
            recognizer: Client asked for guesses
            scheduler: Clock, timers and background execution
            duration: Round length in ticks (ROUND_DURATION_SEC by default)
            tick_interval: Seconds per tick (TICK_INTERVAL_SEC by default)
            debounce: Quiet period before a request (DEBOUNCE_SEC by default)
            api_key: Credential passed to the recognizer per call
            snapshot_provider: Called for the drawing when an update
                carried no snapshot
            on_guesses: Called with the guess history after it changes
            on_outcome: Called once with the round outcome
        """
        self._catalog = catalog
        self._recognizer = recognizer
        self._scheduler = scheduler
        self.duration = Config.ROUND_DURATION_SEC if duration is None else int(duration)
        self.tick_interval = Config.TICK_INTERVAL_SEC if tick_interval is None else tick_interval
        self.debounce = Config.DEBOUNCE_SEC if debounce is None else debounce
        self._api_key = api_key
        self._snapshot_provider = snapshot_provider
        self._on_guesses = on_guesses
        self._on_outcome = on_outcome

        if self.duration <= 0:
            raise ValueError("Round duration must be positive")

        self._countdown = Timer(scheduler)
        self._debounce_timer = Timer(scheduler)
        self._expiry = Timer(scheduler)

        self._state = RoundState.IDLE
        self._round: Optional[Round] = None
        self._outcome: Optional[RoundOutcome] = None
        self._snapshot: Any = None
        self._request_ids = itertools.count(1)
        self._in_flight = False
        self._follow_up = False
        self.requests_sent = 0

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def round(self) -> Optional[Round]:
        return self._round

    @property
    def outcome(self) -> Optional[RoundOutcome]:
        return self._outcome

    @property
    def guesses(self) -> List[Guess]:
        return list(self._round.guess_history) if self._round else []

    def start(self, excluding: Iterable[str] = ()) -> Round:
        """
        Pick a word and start the countdown.

        Args:
            excluding: Word texts to avoid (recently played)

        Returns:
            The new Round

        Raises:
            RoundStateError: If the loop already ran a round
            EmptyCatalogError: If the catalog has no words
        """
        if self._state is not RoundState.IDLE:
            raise RoundStateError(f"Cannot start a round from state {self._state.name}")

        word = self._catalog.select_random(excluding)
        self._round = Round(
            target_word=word,
            start_time=self._scheduler.now(),
            duration=self.duration,
            remaining_seconds=self.duration
        )
        self._state = RoundState.ACTIVE
        self._countdown.start(self.tick_interval, self._on_tick)

        logger.info("Round started: %s (%ds)", word.text, self.duration)
        return self._round

    def drawing_updated(self, snapshot: Any = None):
        """
        Note a drawing change and (re)start the debounce window.

        Args:
            snapshot: Current drawing; when None the snapshot provider is
                asked at request time
        """
        if self._state is not RoundState.ACTIVE:
            return
        self._snapshot = snapshot
        self._debounce_timer.start(self.debounce, self._on_debounce)

    def abandon(self) -> Optional[RoundOutcome]:
        """End the round at the player's request."""
        if self._state is not RoundState.ACTIVE:
            return self._outcome
        return self._finish(RoundState.ABANDONED)

    def _on_tick(self):
        if self._state is not RoundState.ACTIVE:
            return

        self._round.remaining_seconds = max(0, self._round.remaining_seconds - 1)
        if self._round.remaining_seconds == 0:
            # Resolve after anything else due at this instant, so a correct
            # guess arriving now still wins
            self._expiry.start(0, self._expire)
            return

        self._countdown.start(self.tick_interval, self._on_tick)

    def _expire(self):
        if self._state is RoundState.ACTIVE:
            self._finish(RoundState.TIMED_OUT)

    def _on_debounce(self):
        if self._state is not RoundState.ACTIVE:
            return
        if self._in_flight:
            # One request at a time; the newer drawing goes out once the
            # current response is in
            self._follow_up = True
            return
        self._send_request()

    def _send_request(self):
        snapshot = self._snapshot
        if snapshot is None and self._snapshot_provider is not None:
            snapshot = self._snapshot_provider()

        request_id = next(self._request_ids)
        self._in_flight = True
        self._follow_up = False
        self.requests_sent += 1
        target = self._round.target_word.text
        api_key = self._api_key

        logger.debug("Recognition request #%d for %s", request_id, target)
        self._scheduler.run_in_background(
            lambda: self._recognize(request_id, snapshot, target, api_key),
            lambda result: self._on_recognition(request_id, result)
        )

    def _recognize(self, request_id: int, snapshot: Any, target: str, api_key: Optional[str]) -> RecognitionResult:
        # Runs off the caller's thread. A failure still has to come back as
        # a result, or the loop would wait on this request forever.
        try:
            return self._recognizer.recognize(snapshot, target, api_key)
        except Exception:
            logger.exception("Recognition request #%d failed", request_id)
            return RecognitionResult.throttled()

    def _on_recognition(self, request_id: int, result: RecognitionResult):
        self._in_flight = False
        if self._state is not RoundState.ACTIVE:
            logger.debug("Dropping response #%d for a finished round", request_id)
            return

        if result.guesses:
            self._record_guesses(result)
        if self._state is RoundState.ACTIVE and self._follow_up:
            self._send_request()

    def _record_guesses(self, result: RecognitionResult):
        now = self._scheduler.now()
        for text in result.guesses:
            self._round.guess_history.append(Guess(
                text=text,
                is_correct=result.is_correct and text == result.matched_guess,
                observed_at=now
            ))
        self._round.guesses_observed += len(result.guesses)

        if self._on_guesses:
            self._on_guesses(self.guesses)

        if result.is_correct:
            self._finish(RoundState.SUCCEEDED)

    def _finish(self, state: RoundState) -> RoundOutcome:
        self._countdown.cancel()
        self._debounce_timer.cancel()
        self._expiry.cancel()
        self._follow_up = False

        self._state = state
        self._round.active = False
        word = self._round.target_word
        self._outcome = RoundOutcome(
            result=_RESULT_FOR_STATE[state],
            word=word.text,
            emoji=word.emoji,
            elapsed_seconds=self._round.elapsed_seconds,
            attempt_count=self._round.guesses_observed
        )

        logger.info(
            "Round %s: %s after %ds, %d guesses",
            self._outcome.result.value, word.text,
            self._outcome.elapsed_seconds, self._outcome.attempt_count
        )
        if self._on_outcome:
            self._on_outcome(self._outcome)
        return self._outcome
