"""
Flashdeck - Study Schemas
Wire format of the study session state
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from flashdeck.study.session import (
    Action,
    Phase,
    StudyCard,
    StudyResult,
    StudyState,
)


class StudyCardSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    front: str
    back: str


class StudyResultSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    card_id: int
    correct: bool


class StudyStateSchema(BaseModel):
    """
    A study session snapshot.

    Clients post it back unchanged (derived fields are ignored on input) to
    ``/study/transition``.
    """
    cards: List[StudyCardSchema] = Field(..., min_length=1)
    index: int = Field(0, ge=0)
    phase: Phase = Phase.QUESTION
    results: List[StudyResultSchema] = Field(default_factory=list)

    # Derived, output only
    current_card: Optional[StudyCardSchema] = None
    total_count: int = 0
    completed_count: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    progress_percent: float = 0.0
    accuracy_percent: Optional[int] = None
    is_complete: bool = False
    is_perfect: bool = False

    @model_validator(mode="after")
    def validate_cursor(self) -> "StudyStateSchema":
        if self.index >= len(self.cards):
            raise ValueError("index is outside the card list")
        return self

    @classmethod
    def from_state(cls, state: StudyState) -> "StudyStateSchema":
        return cls(
            cards=[StudyCardSchema.model_validate(c) for c in state.cards],
            index=state.index,
            phase=state.phase,
            results=[StudyResultSchema.model_validate(r) for r in state.results],
            current_card=StudyCardSchema.model_validate(state.current_card),
            total_count=state.total_count,
            completed_count=state.completed_count,
            correct_count=state.correct_count,
            incorrect_count=state.incorrect_count,
            progress_percent=state.progress_percent,
            accuracy_percent=state.accuracy_percent,
            is_complete=state.is_complete,
            is_perfect=state.is_perfect,
        )

    def to_state(self) -> StudyState:
        return StudyState(
            cards=tuple(StudyCard(id=c.id, front=c.front, back=c.back) for c in self.cards),
            index=self.index,
            phase=self.phase,
            results=tuple(StudyResult(card_id=r.card_id, correct=r.correct) for r in self.results),
        )


class StudySessionResponse(BaseModel):
    """A fresh session for a deck."""
    deck_id: int
    deck_name: str
    deck_description: Optional[str] = None
    state: StudyStateSchema


class StudyTransitionRequest(BaseModel):
    """One action applied to a posted state."""
    state: StudyStateSchema
    action: Action
    correct: Optional[bool] = None
    step: Optional[Literal[-1, 1]] = None
    key: Optional[str] = Field(None, max_length=20)

    @model_validator(mode="after")
    def validate_arguments(self) -> "StudyTransitionRequest":
        if self.action == Action.GRADE and self.correct is None:
            raise ValueError("'correct' is required for the grade action")
        if self.action == Action.NAVIGATE and self.step is None:
            raise ValueError("'step' is required for the navigate action")
        if self.action == Action.KEY and self.key is None:
            raise ValueError("'key' is required for the key action")
        return self
