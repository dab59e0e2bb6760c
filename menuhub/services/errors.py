"""Domain errors raised by services and translated to HTTP by the routes."""

from typing import Iterable


class NotFoundError(LookupError):
    """A referenced record or singleton does not exist."""


class MissingRecordsError(NotFoundError):
    """Some ids in a batch do not exist."""

    def __init__(self, model_name: str, ids: Iterable[str]):
        self.model_name = model_name
        self.ids = list(ids)
        super().__init__(f"{model_name} ids not found: {', '.join(self.ids)}")


class MediaRejectedError(ValueError):
    """An upload failed type or size validation."""


class RangeNotSatisfiableError(ValueError):
    """A byte range starts past the end of the payload."""
