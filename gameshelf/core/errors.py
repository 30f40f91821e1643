from __future__ import annotations


class GameShelfError(Exception):
    """Base class for every error raised or reported by the shelf."""


class ManifestError(GameShelfError):
    """The manifest could not be turned into a catalog. Fatal to catalog population."""


class ManifestMalformed(ManifestError):
    pass


class ManifestMissingId(ManifestError):
    def __init__(self, index: int) -> None:
        super().__init__(f"Manifest entry #{index} has no id")
        self.index = index


class ManifestDuplicateId(ManifestError):
    def __init__(self, game_id: str) -> None:
        super().__init__(f"Duplicate game id in manifest: {game_id}")
        self.game_id = game_id


class GameNotFound(GameShelfError):
    def __init__(self, game_id: str) -> None:
        super().__init__(f"Game not found: {game_id}")
        self.game_id = game_id


class InvalidTransition(GameShelfError):
    def __init__(self, command: str, status: str) -> None:
        super().__init__(f"Command '{command}' not allowed while {status}")
        self.command = command
        self.status = status


class PersistenceError(GameShelfError):
    """A write to the user-state store failed. In-memory state stays authoritative."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Could not persist '{key}': {reason}")
        self.key = key
        self.reason = reason
