"""Flashdeck - Study session engine."""
from flashdeck.study.session import (
    Action,
    Phase,
    StudyCard,
    StudyResult,
    StudySession,
    StudyState,
    apply_action,
    grade,
    handle_key,
    navigate,
    restart,
    reveal,
    review_incorrect,
    shuffle,
    start_session,
)

__all__ = [
    "Action",
    "Phase",
    "StudyCard",
    "StudyResult",
    "StudySession",
    "StudyState",
    "apply_action",
    "grade",
    "handle_key",
    "navigate",
    "restart",
    "reveal",
    "review_incorrect",
    "shuffle",
    "start_session",
]
