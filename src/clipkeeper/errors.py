"""Exceptions raised inside the capture pipeline."""


class ClipkeeperError(Exception):
    """Base class for clipkeeper errors."""


class ClipboardReadError(ClipkeeperError):
    """The clipboard could not be read, usually because another process holds it."""


class ImageArchiveError(ClipkeeperError):
    """An image could not be written to the archive."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
