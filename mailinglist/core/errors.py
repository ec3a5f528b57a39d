"""
Error taxonomy shared by the store and both front ends.
"""


class MailingListError(Exception):
    """Base class for every failure the store reports."""


class DuplicateKey(MailingListError):
    """An insert hit the unique constraint on email."""


class InvalidArgument(MailingListError):
    """A caller supplied a value the store refuses before querying."""


class NotFound(MailingListError):
    """
    No subscriber matched.
    The store itself returns None for a missing row; the front ends raise this
    when they need to report it.
    """


class StoreFailure(MailingListError):
    """Any other driver or query failure."""
