class PairpostError(Exception):
    """Base class for failures that are reported to the client with a message."""

    status_code = 400

    def __init__(self, message: str = "An unknown error occurred."):
        self.message = message
        super().__init__(message)


class ValidationError(PairpostError):
    pass


class NotFoundError(PairpostError):
    pass


class NoPartnerError(PairpostError):
    pass


class OperationError(PairpostError):
    """A storage or persistence failure."""
