"""Flashdeck - API v1 Router."""
from fastapi import APIRouter

from flashdeck.api.v1.cards import router as cards_router
from flashdeck.api.v1.decks import router as decks_router
from flashdeck.api.v1.generation import router as generation_router
from flashdeck.api.v1.study import router as study_router

api_router = APIRouter()

api_router.include_router(decks_router)
api_router.include_router(cards_router)
api_router.include_router(generation_router)
api_router.include_router(study_router)
