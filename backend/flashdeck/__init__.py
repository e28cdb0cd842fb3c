"""Flashdeck - flashcard decks with AI generation and study sessions."""
