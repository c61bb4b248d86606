"""Domain errors rendered as ``{"error": message}`` responses."""


class MessengerError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(MessengerError):
    status_code = 400


class ForbiddenError(MessengerError):
    status_code = 403


class NotFoundError(MessengerError):
    status_code = 404


class ConflictError(MessengerError):
    status_code = 409
