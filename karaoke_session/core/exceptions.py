"""Custom exceptions for Karaoke Session."""


class KaraokeSessionError(Exception):
    """Base exception for all Karaoke Session errors."""

    pass


class NotFoundError(KaraokeSessionError):
    """Resource not found."""

    pass


class ValidationError(KaraokeSessionError):
    """Validation failed."""

    pass


class AuthorizationError(KaraokeSessionError):
    """User not authorized for this action."""

    pass


class DuplicateParticipantError(KaraokeSessionError):
    """Participant is already on the session roster."""

    def __init__(self, session_id: str, participant_id: str):
        self.session_id = session_id
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} already in session {session_id}")


class SessionInactiveError(KaraokeSessionError):
    """Session has ended and no longer accepts changes."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is no longer active")


class ExternalServiceError(KaraokeSessionError):
    """External service (Firestore, identity provider, etc.) failed."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")


class StoreUnavailableError(ExternalServiceError):
    """Underlying song/session store read or write failed."""

    def __init__(self, message: str, service: str = "firestore"):
        super().__init__(service, message)
