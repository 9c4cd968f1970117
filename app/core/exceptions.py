"""Error taxonomy for profile and document operations.

Every operation reports failures to its caller with one of these types.
The HTTP layer maps them to status codes in ``app.routers.profile``.
"""


class ProfileError(Exception):
    """Base class for all profile lifecycle errors."""


class PreconditionError(ProfileError):
    """Operation invoked without the required prior state.

    Examples: uploading a document before the student record exists,
    resolving the card before a membership code was assigned, or calling
    any operation without an authenticated identity.
    """


class StoreBusyError(PreconditionError):
    """Another operation of the same session is still in flight."""


class TransientStoreError(ProfileError):
    """Supabase (table or storage) failed during a read or write.

    The in-memory profile is left exactly as it was before the call, so
    the caller may simply retry.
    """


class ProfileValidationError(ProfileError):
    """Submitted profile fields are malformed (rejected before any I/O)."""

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
