"""
Exception hierarchy for the dispatch service.

Store errors mirror what a hosted document database can report; the
workflow and session layers add their own domain errors. All of them are
mapped to HTTP responses in ``qgo_dispatch.main``.
"""
from typing import Optional


class DispatchError(Exception):
    """Base class for every error raised by this package."""


class StoreError(DispatchError):
    """Catch-all transport/store failure."""

    def __init__(self, message: str, collection: Optional[str] = None):
        super().__init__(message)
        self.collection = collection


class NotFound(StoreError):
    """patch/get on a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found", collection)
        self.doc_id = doc_id


class PermissionDenied(StoreError):
    """The store refused access to a collection or document."""


class TransportError(StoreError):
    """Network or driver level failure talking to the store."""


class StoreUnconfigured(StoreError):
    """No remote store is available; fixture data is read only."""

    def __init__(self, message: str = "Remote store is not configured"):
        super().__init__(message)


class AlreadyExists(StoreError):
    """A document with the requested id already exists."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} already exists", collection)
        self.doc_id = doc_id


class InvalidTransition(DispatchError):
    """A status change that the lifecycle does not allow."""


class InvalidCredentials(DispatchError):
    """Login rejected."""
