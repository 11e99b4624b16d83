"""Errors raised by the room store and handled by the game services."""


class GameError(Exception):
    """Base exception for game errors."""
    pass


class StorageError(GameError):
    """Raised when the database rejects a read or write."""
    pass


class DuplicateGuess(GameError):
    """Raised when a player already guessed in the round."""
    pass


class RoomNotFound(GameError):
    """Raised when no room matches a join code."""
    pass
