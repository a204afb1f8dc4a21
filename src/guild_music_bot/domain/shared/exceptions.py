"""Base exception classes for playback-engine errors."""

from __future__ import annotations


class MusicBotError(Exception):
    """Base exception for all bot-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ResolutionError(MusicBotError):
    """Raised when a request or a single candidate cannot be turned into a track."""

    def __init__(self, query: str, message: str | None = None) -> None:
        msg = message or f"Could not resolve '{query}'"
        super().__init__(msg, code="RESOLUTION_ERROR")
        self.query = query


class PipelineError(MusicBotError):
    """Raised when fetching or converting an asset fails."""

    def __init__(self, asset_key: str, stage: str, message: str | None = None) -> None:
        msg = message or f"Pipeline stage '{stage}' failed for {asset_key}"
        super().__init__(msg, code="PIPELINE_ERROR")
        self.asset_key = asset_key
        self.stage = stage


class TransportError(MusicBotError):
    """Raised when the voice transport cannot connect or stream."""

    def __init__(self, guild_id: int, message: str | None = None) -> None:
        msg = message or f"Voice transport failed in guild {guild_id}"
        super().__init__(msg, code="TRANSPORT_ERROR")
        self.guild_id = guild_id


class ExternalAPIError(MusicBotError):
    """Raised when a third-party API (auth or data) call fails."""

    def __init__(self, service: str, message: str | None = None) -> None:
        msg = message or f"{service} API request failed"
        super().__init__(msg, code="EXTERNAL_API_ERROR")
        self.service = service


class InvalidStateTransitionError(MusicBotError):
    """Raised when the scheduler attempts a transition the state machine forbids."""

    def __init__(self, current_state: str, target_state: str) -> None:
        super().__init__(
            f"Cannot transition from {current_state} to {target_state}",
            code="INVALID_STATE_TRANSITION",
        )
        self.current_state = current_state
        self.target_state = target_state
