class ClientError(Exception):
    """Base class for errors raised by the ordering core."""


class EmptyCartError(ClientError):
    def __init__(self):
        super().__init__("Cannot place an order with an empty cart")


class MissingSessionError(ClientError):
    def __init__(self, message: str = "No dining session: a table number is required"):
        super().__init__(message)


class SubmissionInProgressError(ClientError):
    def __init__(self):
        super().__init__("An order is already being placed")


class InvalidPhoneError(ClientError):
    """Phone number or one-time code failed local validation."""


class OrderServiceError(ClientError):
    """The order service could not be reached or rejected the request.

    `status_code` is None for transport failures (timeouts, refused connections).
    """

    def __init__(self, message: str, status_code: int | None = None, detail=None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
