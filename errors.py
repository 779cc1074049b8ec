class CommunityError(Exception):
    """Base class for errors surfaced to API callers as {"error": message}."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationRequired(CommunityError):
    """Raised when a session cookie is missing or fails verification."""

    status_code = 401


class ValidationFailure(CommunityError):
    """Raised when a request is well-formed JSON but semantically invalid."""

    status_code = 400


class NotFound(CommunityError):
    """Raised when no document matches the requested identifier."""

    status_code = 404


class StoreError(CommunityError):
    """Raised when the document store cannot be reached or a query fails."""

    status_code = 500
