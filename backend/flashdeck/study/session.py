"""
Flashdeck - Study Session Engine
Immutable study state and the pure transitions that drive it.

A session walks through a deck card by card: the front is shown
(``question``), the back is revealed (``answer``), the learner grades
themselves, and the cursor moves on until the last card is graded
(``complete``). Nothing here is persisted; callers keep the returned state
for as long as the session lives.
"""
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, Optional

from flashdeck.core.exceptions import ValidationError


class Phase(str, Enum):
    """Where the current card is in its question/answer cycle."""
    QUESTION = "question"
    ANSWER = "answer"
    COMPLETE = "complete"


class Action(str, Enum):
    """Transitions a caller can request."""
    REVEAL = "reveal"
    GRADE = "grade"
    SHUFFLE = "shuffle"
    RESTART = "restart"
    REVIEW_INCORRECT = "review_incorrect"
    NAVIGATE = "navigate"
    KEY = "key"


@dataclass(frozen=True)
class StudyCard:
    id: int
    front: str
    back: str


@dataclass(frozen=True)
class StudyResult:
    card_id: int
    correct: bool


@dataclass(frozen=True)
class StudyState:
    """Snapshot of a study session. Every transition returns a new one."""

    cards: tuple[StudyCard, ...]
    index: int = 0
    phase: Phase = Phase.QUESTION
    results: tuple[StudyResult, ...] = ()

    @property
    def current_card(self) -> StudyCard:
        return self.cards[self.index]

    @property
    def is_flipped(self) -> bool:
        return self.phase == Phase.ANSWER

    @property
    def is_complete(self) -> bool:
        return self.phase == Phase.COMPLETE

    @property
    def is_last_card(self) -> bool:
        return self.index == len(self.cards) - 1

    @property
    def total_count(self) -> int:
        return len(self.cards)

    @property
    def completed_count(self) -> int:
        return len(self.results)

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.results if r.correct)

    @property
    def incorrect_count(self) -> int:
        return sum(1 for r in self.results if not r.correct)

    @property
    def incorrect_card_ids(self) -> list[int]:
        return [r.card_id for r in self.results if not r.correct]

    @property
    def progress_percent(self) -> float:
        if not self.cards:
            return 0.0
        return self.completed_count / self.total_count * 100

    @property
    def accuracy_percent(self) -> Optional[int]:
        """Rounded share of correct answers; None until something is graded."""
        if self.completed_count == 0:
            return None
        return round(self.correct_count / self.completed_count * 100)

    @property
    def is_perfect(self) -> bool:
        return self.is_complete and self.correct_count == self.total_count


def start_session(cards: Iterable[Any]) -> StudyState:
    """
    Build the initial state from a deck's cards, in the order given.

    Accepts anything exposing ``id``, ``front`` and ``back`` (ORM rows,
    schemas, ``StudyCard``).

    Raises:
        ValidationError: If there are no cards to study
    """
    study_cards = tuple(
        card if isinstance(card, StudyCard)
        else StudyCard(id=card.id, front=card.front, back=card.back)
        for card in cards
    )
    if not study_cards:
        raise ValidationError(
            "This deck doesn't have any cards yet. Add some cards to start studying!"
        )
    return StudyState(cards=study_cards)


# ============================================================================
# Transitions
# ============================================================================

def reveal(state: StudyState) -> StudyState:
    """Show the back of the current card."""
    if state.phase != Phase.QUESTION:
        return state
    return replace(state, phase=Phase.ANSWER)


def grade(state: StudyState, correct: bool) -> StudyState:
    """Record the learner's verdict and move on. Only valid while flipped."""
    if state.phase != Phase.ANSWER:
        return state

    results = state.results + (StudyResult(card_id=state.current_card.id, correct=correct),)

    if state.is_last_card:
        return replace(state, phase=Phase.COMPLETE, results=results)
    return replace(state, index=state.index + 1, phase=Phase.QUESTION, results=results)


def shuffle(state: StudyState, rng: Optional[random.Random] = None) -> StudyState:
    """Fisher-Yates shuffle of the working order, then start over."""
    rng = rng or random
    cards = list(state.cards)
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]
    return StudyState(cards=tuple(cards))


def restart(state: StudyState) -> StudyState:
    """Start over with the current order."""
    return StudyState(cards=state.cards)


def review_incorrect(state: StudyState) -> StudyState:
    """
    Jump back to the first missed card (in current order) after completion.

    Results are cleared; the session then continues from that card. Misses
    for cards no longer in the session are ignored.
    """
    if state.phase != Phase.COMPLETE:
        return state

    missed = set(state.incorrect_card_ids)
    if not missed:
        return state

    first_missed = next(
        (i for i, card in enumerate(state.cards) if card.id in missed), None
    )
    if first_missed is None:
        return state
    return StudyState(cards=state.cards, index=first_missed)


def navigate(state: StudyState, step: int) -> StudyState:
    """
    Move the cursor without grading.

    The skipped card gets no result at all; this mirrors the arrow-key
    behaviour of the study screen.
    """
    if state.phase == Phase.COMPLETE:
        return state

    target = state.index + step
    if target < 0 or target >= len(state.cards):
        return state
    return replace(state, index=target, phase=Phase.QUESTION)


# ============================================================================
# Keyboard mapping
# ============================================================================

KEY_BINDINGS: dict[str, tuple[Action, Any]] = {
    "space": (Action.REVEAL, None),
    " ": (Action.REVEAL, None),
    "down": (Action.REVEAL, None),
    "arrowdown": (Action.REVEAL, None),
    "1": (Action.GRADE, False),
    "digit1": (Action.GRADE, False),
    "numpad1": (Action.GRADE, False),
    "2": (Action.GRADE, True),
    "digit2": (Action.GRADE, True),
    "numpad2": (Action.GRADE, True),
    "left": (Action.NAVIGATE, -1),
    "arrowleft": (Action.NAVIGATE, -1),
    "right": (Action.NAVIGATE, 1),
    "arrowright": (Action.NAVIGATE, 1),
}


def handle_key(state: StudyState, key: str) -> StudyState:
    """Apply a key press. Unknown keys and any key after completion are ignored."""
    if state.is_complete:
        return state

    binding = KEY_BINDINGS.get(key if key == " " else key.strip().lower())
    if binding is None:
        return state

    action, argument = binding
    if action == Action.REVEAL:
        return reveal(state)
    if action == Action.GRADE:
        return grade(state, argument)
    return navigate(state, argument)


def apply_action(
    state: StudyState,
    action: Action | str,
    *,
    correct: Optional[bool] = None,
    step: Optional[int] = None,
    key: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> StudyState:
    """
    Dispatch a named action to its transition.

    An action missing its argument (`correct`, `step` or `key`) leaves the
    state unchanged.
    """
    action = Action(action)

    if action == Action.REVEAL:
        return reveal(state)
    if action == Action.GRADE:
        if correct is None:
            return state
        return grade(state, correct)
    if action == Action.SHUFFLE:
        return shuffle(state, rng)
    if action == Action.RESTART:
        return restart(state)
    if action == Action.REVIEW_INCORRECT:
        return review_incorrect(state)
    if action == Action.NAVIGATE:
        if step is None:
            return state
        return navigate(state, step)
    if key is None:
        return state
    return handle_key(state, key)


class StudySession:
    """
    Stateful holder for one run through a deck.

    Each method applies a transition and returns the new state.
    """

    def __init__(self, cards: Iterable[Any], rng: Optional[random.Random] = None):
        self.state = start_session(cards)
        self._rng = rng

    def _apply(self, new_state: StudyState) -> StudyState:
        self.state = new_state
        return new_state

    def reveal(self) -> StudyState:
        return self._apply(reveal(self.state))

    def grade(self, correct: bool) -> StudyState:
        return self._apply(grade(self.state, correct))

    def shuffle(self) -> StudyState:
        return self._apply(shuffle(self.state, self._rng))

    def restart(self) -> StudyState:
        return self._apply(restart(self.state))

    def review_incorrect(self) -> StudyState:
        return self._apply(review_incorrect(self.state))

    def navigate(self, step: int) -> StudyState:
        return self._apply(navigate(self.state, step))

    def press(self, key: str) -> StudyState:
        return self._apply(handle_key(self.state, key))
