"""
Flashdeck - Cards API Router
Endpoints for the cards of a deck
"""
from fastapi import APIRouter, HTTPException, Response, status

from flashdeck.api.deps import CurrentIdentity, DbSession, http_error, revalidate
from flashdeck.core.exceptions import FlashdeckError
from flashdeck.schemas.deck import CardBulkCreate, CardCreate, CardResponse, CardUpdate
from flashdeck.services.cards import CardService

router = APIRouter(tags=["Cards"])


@router.get(
    "/decks/{deck_id}/cards",
    response_model=list[CardResponse],
    summary="List cards",
    description="All cards of a deck, most recently updated first.",
)
async def list_cards(
    deck_id: int,
    identity: CurrentIdentity,
    db: DbSession,
) -> list[CardResponse]:
    service = CardService(db)

    try:
        cards = await service.list_cards(identity.user_id, deck_id)
    except FlashdeckError as e:
        raise http_error(e)

    return [CardResponse.model_validate(card) for card in cards]


@router.post(
    "/decks/{deck_id}/cards",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a card",
)
async def create_card(
    deck_id: int,
    data: CardCreate,
    identity: CurrentIdentity,
    db: DbSession,
    response: Response,
) -> CardResponse:
    service = CardService(db)

    try:
        card = await service.create_card(identity.user_id, deck_id, data)
    except FlashdeckError as e:
        raise http_error(e)

    revalidate(response, f"/decks/{deck_id}")
    return CardResponse.model_validate(card)


@router.post(
    "/decks/{deck_id}/cards/bulk",
    response_model=list[CardResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create many cards",
)
async def create_many_cards(
    deck_id: int,
    data: CardBulkCreate,
    identity: CurrentIdentity,
    db: DbSession,
    response: Response,
) -> list[CardResponse]:
    service = CardService(db)

    try:
        cards = await service.create_many_cards(identity.user_id, deck_id, data.cards)
    except FlashdeckError as e:
        raise http_error(e)

    revalidate(response, f"/decks/{deck_id}")
    return [CardResponse.model_validate(card) for card in cards]


@router.get(
    "/decks/{deck_id}/cards/random",
    response_model=CardResponse,
    summary="Get a random card",
)
async def get_random_card(
    deck_id: int,
    identity: CurrentIdentity,
    db: DbSession,
) -> CardResponse:
    service = CardService(db)

    try:
        card = await service.random_card(identity.user_id, deck_id)
    except FlashdeckError as e:
        raise http_error(e)

    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="This deck has no cards",
        )
    return CardResponse.model_validate(card)


@router.get("/cards/{card_id}", response_model=CardResponse, summary="Get a card")
async def get_card(
    card_id: int,
    identity: CurrentIdentity,
    db: DbSession,
) -> CardResponse:
    service = CardService(db)

    try:
        card, _ = await service.get_owned_card(identity.user_id, card_id)
    except FlashdeckError as e:
        raise http_error(e)

    return CardResponse.model_validate(card)


@router.patch("/cards/{card_id}", response_model=CardResponse, summary="Update a card")
async def update_card(
    card_id: int,
    data: CardUpdate,
    identity: CurrentIdentity,
    db: DbSession,
    response: Response,
) -> CardResponse:
    service = CardService(db)

    try:
        card = await service.update_card(identity.user_id, card_id, data)
    except FlashdeckError as e:
        raise http_error(e)

    revalidate(response, f"/decks/{card.deck_id}")
    return CardResponse.model_validate(card)


@router.delete(
    "/cards/{card_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a card",
)
async def delete_card(
    card_id: int,
    identity: CurrentIdentity,
    db: DbSession,
    response: Response,
) -> None:
    service = CardService(db)

    try:
        deck_id = await service.delete_card(identity.user_id, card_id)
    except FlashdeckError as e:
        raise http_error(e)

    revalidate(response, f"/decks/{deck_id}")
