"""Blob storage, asset publication, and document store collaborators."""

from .blob import BlobStorage, HttpBlobStorage, LocalBlobStorage
from .documents import AuthorIdentity, DocumentStore, JsonDocumentStore
from .publisher import AssetPublisher

__all__ = [
    "AssetPublisher",
    "AuthorIdentity",
    "BlobStorage",
    "DocumentStore",
    "HttpBlobStorage",
    "JsonDocumentStore",
    "LocalBlobStorage",
]
