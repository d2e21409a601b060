"""
Error taxonomy shared by the table store, the auth service and the HTTP layer.

Each error carries the HTTP status it maps to; ``app.main`` renders them as
``{"detail": ...}`` responses.
"""


class AuthServiceError(Exception):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(AuthServiceError):
    status_code = 400
    default_detail = "Invalid request"


class InvalidCredentials(AuthServiceError):
    # Same text for unknown email and wrong password
    status_code = 401
    default_detail = "Invalid email or password"

    def __init__(self):
        super().__init__(self.default_detail)


class NotFound(AuthServiceError):
    status_code = 404
    default_detail = "Not found"


class AlreadyExists(AuthServiceError):
    status_code = 409
    default_detail = "User already exists with this email"


class StoreUnavailable(AuthServiceError):
    status_code = 503
    default_detail = "User store is unavailable"
