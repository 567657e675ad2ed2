"""Vault access: document records and the filesystem document store."""

from docreader.vault.models import DocumentRecord, is_under, join_path, normalize_path
from docreader.vault.store import DocumentStore, FileSystemVault

__all__ = [
    "DocumentRecord",
    "DocumentStore",
    "FileSystemVault",
    "is_under",
    "join_path",
    "normalize_path",
]
