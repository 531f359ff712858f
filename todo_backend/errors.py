"""Error taxonomy shared by the identity manager and the task store.

Every error is terminal and carries the message shown to the caller.
"""


class CoreError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Conflict(CoreError):
    status_code = 409


class NotFound(CoreError):
    status_code = 404


class InvalidCode(CoreError):
    status_code = 400


class InvalidCredentials(CoreError):
    status_code = 401


class NotVerified(CoreError):
    status_code = 403


class Unauthenticated(CoreError):
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class InvalidInput(CoreError):
    status_code = 422
