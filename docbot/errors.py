"""Exception hierarchy shared by the storage, generation and API layers.

Dialogue validation failures are never raised: the booking flow turns them
into reprompts. These exceptions cover what the caller must handle.
"""

from typing import Optional


class DocbotError(Exception):
    """Base class for all docbot errors."""


class NotFoundError(DocbotError):
    """A requested record does not exist."""


class TenantNotFoundError(NotFoundError):
    def __init__(self, tenant_id: str) -> None:
        super().__init__(f"Bot {tenant_id} not found")
        self.tenant_id = tenant_id


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: str) -> None:
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id


class DocumentTooShortError(DocbotError):
    """Extracted document text is too short to index."""

    def __init__(self, char_count: int, minimum: int) -> None:
        super().__init__(
            f"Could not extract meaningful text from document "
            f"({char_count} characters, need at least {minimum})"
        )
        self.char_count = char_count
        self.minimum = minimum


class InvalidStatusError(DocbotError):
    """A booking status outside the allowed set was requested."""

    def __init__(self, status: str, allowed: list[str]) -> None:
        super().__init__(f"Invalid status {status!r}. Valid statuses: {allowed}")
        self.status = status
        self.allowed = allowed


class UpstreamError(DocbotError):
    """An external collaborator (text extraction, answer generation) failed."""

    def __init__(
        self, message: str, retryable: bool = False, cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.cause = cause
