"""Error types raised by the search core."""


class SupraError(Exception):
    """Base class for search core errors."""


class ImageIngestionError(SupraError):
    """The optional image could not be turned into a descriptor."""


class InvalidInputError(ImageIngestionError):
    """Empty image path or unsupported image format."""


class ImageNotFoundError(ImageIngestionError):
    """Image file does not exist."""


class ImageTooLargeError(ImageIngestionError):
    """Image file exceeds the size cap."""

    def __init__(self, path: str, size: int, limit: int):
        self.path = path
        self.size = size
        self.limit = limit
        super().__init__(f"Image {path} is {size} bytes, limit is {limit} bytes")


class InferenceError(SupraError):
    """Backend unreachable, or its response is not the expected JSON."""
