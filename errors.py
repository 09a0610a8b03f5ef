"""Error taxonomy shared by the services and the HTTP layer.

Every error carries the status code it is reported with, so route handlers
never translate them by hand; ``main.py`` registers one exception handler for
the whole family.
"""


class TaskFlowError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskFlowError):
    status_code = 400
    default_message = "Invalid request body"


class AuthError(TaskFlowError):
    status_code = 401
    default_message = "unauthorized"


class TokenInvalid(AuthError):
    default_message = "Invalid token"


class TokenExpired(AuthError):
    default_message = "Token expired"


class Forbidden(TaskFlowError):
    status_code = 403
    default_message = "forbidden"


class NotFound(TaskFlowError):
    status_code = 404
    default_message = "Not found"


class StoreError(TaskFlowError):
    status_code = 500
    default_message = "Database error"
