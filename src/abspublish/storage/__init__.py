"""Storage layer — the container operations the publisher lifecycle drives."""

from abspublish.storage.blob import PAGE_SIZE, BlobContainer, ListPage, is_directory_placeholder

__all__ = ["PAGE_SIZE", "BlobContainer", "ListPage", "is_directory_placeholder"]
