"""
Flashdeck - Study API Router
Starts study sessions and applies session transitions.

Sessions are never stored: the client holds the state and posts it back
with each action.
"""
from fastapi import APIRouter

from flashdeck.api.deps import CurrentIdentity, DbSession, http_error
from flashdeck.core.exceptions import FlashdeckError
from flashdeck.schemas.study import (
    StudySessionResponse,
    StudyStateSchema,
    StudyTransitionRequest,
)
from flashdeck.services.cards import CardService
from flashdeck.study.session import apply_action, start_session

router = APIRouter(tags=["Study"])


@router.get(
    "/decks/{deck_id}/study",
    response_model=StudySessionResponse,
    summary="Start a study session",
    description="Loads every card of the deck once and returns the initial session state.",
)
async def start_study_session(
    deck_id: int,
    identity: CurrentIdentity,
    db: DbSession,
) -> StudySessionResponse:
    service = CardService(db)

    try:
        deck = await service.decks.get_owned_deck(identity.user_id, deck_id)
        cards = await service.list_cards(identity.user_id, deck_id)
        state = start_session(cards)
    except FlashdeckError as e:
        raise http_error(e)

    return StudySessionResponse(
        deck_id=deck.id,
        deck_name=deck.name,
        deck_description=deck.description,
        state=StudyStateSchema.from_state(state),
    )


@router.post(
    "/study/transition",
    response_model=StudyStateSchema,
    summary="Apply a study action",
    description=(
        "Actions: reveal, grade (with `correct`), shuffle, restart, "
        "review_incorrect, navigate (with `step` of -1 or 1), key (with `key`). "
        "Actions that do not apply in the current phase leave the state unchanged."
    ),
)
async def apply_study_transition(
    request: StudyTransitionRequest,
    identity: CurrentIdentity,
) -> StudyStateSchema:
    new_state = apply_action(
        request.state.to_state(),
        request.action,
        correct=request.correct,
        step=request.step,
        key=request.key,
    )
    return StudyStateSchema.from_state(new_state)
