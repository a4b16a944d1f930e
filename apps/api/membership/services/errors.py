"""Domain error types shared by services."""


class InvalidArgumentError(ValueError):
    """Raised when a caller passes an argument a service cannot work with (mapped to HTTP 400)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
