"""Exceptions raised by the relay."""


class RelayError(Exception):
    """Base class for relay errors."""


class InvalidInput(RelayError):
    """A post or fetch request carried a malformed argument."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, str]:
        data = {"error": self.message}
        if self.field:
            data["field"] = self.field
        return data


class RelayUnavailable(RelayError):
    """The relay server could not be reached or refused the request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
