"""In-memory game rules and client helpers for a multiplayer space simulation."""

__version__ = "0.1.0"