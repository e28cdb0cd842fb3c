"""Flashdeck - Schemas initialization."""
