"""Exceptions raised by imagekeeper.

Missing records and rejected input are reported through return values and
model validation. The exceptions here cover the failures a caller cannot
recover from by changing its arguments.
"""


class ImageKeeperError(Exception):
    """Base class for imagekeeper errors."""


class StorageError(ImageKeeperError):
    """The key-value store could not be read or written, or holds malformed data."""


class UnsupportedMediaError(ImageKeeperError):
    """An upload was not an image."""
