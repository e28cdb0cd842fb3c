"""Flashdeck - AI module: LLM access and flashcard generation."""
from flashdeck.ai.flashcard_generator import (
    FlashcardGenerator,
    classify_provider_error,
    get_flashcard_generator,
)
from flashdeck.ai.llm import LLMClient, StructuredOutputError, get_llm_client

__all__ = [
    "FlashcardGenerator",
    "LLMClient",
    "StructuredOutputError",
    "classify_provider_error",
    "get_flashcard_generator",
    "get_llm_client",
]
