"""
Exception hierarchy for Polyblog.

Page-level errors are caught by the build loop and reported; storage errors
abort the batch before anything is written.
"""


class PolyblogError(Exception):
    """Base class for all Polyblog errors."""


class UnknownLanguage(PolyblogError):
    """Raised when a code fence names a language with no grammar."""

    def __init__(self, language):
        self.language = language
        super().__init__(f'syntax "{language}" not known')


class MissingCrossReference(PolyblogError):
    """Raised when a page needs a record the snapshot does not contain."""


class MalformedFeedData(PolyblogError):
    """Raised when a post field cannot be serialized into the feed."""


class StorageUnavailable(PolyblogError):
    """Raised when the post database cannot be opened or queried."""


class BannerUnavailable(PolyblogError):
    """Raised when the polyring member directory cannot be used."""


class MalformedPostFile(PolyblogError):
    """Raised when an edited post file cannot be parsed."""
