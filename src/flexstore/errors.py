"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries a stable `kind` and a human-readable message. The API
layer maps `status_code` onto the response; nothing else about the failure
(stack, SQL, internal ids) reaches the caller.
"""


class FlexstoreError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.kind, "message": self.message}


class AuthenticationRequired(FlexstoreError):
    kind = "authentication_required"
    status_code = 401

    def __init__(self, message: str = "You must be logged in."):
        super().__init__(message)


class InvalidCredentials(FlexstoreError):
    kind = "invalid_credentials"
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class Forbidden(FlexstoreError):
    kind = "forbidden"
    status_code = 403

    def __init__(self, message: str = "You are not authorized to perform this action."):
        super().__init__(message)


class NotFound(FlexstoreError):
    """Absent or outside the caller's tenant. The two cases are not distinguished."""

    kind = "not_found"
    status_code = 404


class InvalidInput(FlexstoreError):
    kind = "invalid_input"
    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class Conflict(FlexstoreError):
    kind = "conflict"
    status_code = 409


class DuplicateUser(Conflict):
    kind = "duplicate_user"

    def __init__(self, message: str = "User with this email already exists."):
        super().__init__(message)


class RateLimited(FlexstoreError):
    kind = "rate_limited"
    status_code = 429

    def __init__(self, message: str = "Too many requests, please try again later.", retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after
