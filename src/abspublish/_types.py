"""Shared type definitions for abspublish."""

from typing import Literal

# How the plugin authenticates against the storage account
type CredentialMode = Literal["delegated", "shared-key"]

# Object name inside the container (e.g., "reports/build-42/index.html")
type RemoteKey = str

# Opaque cursor returned by a paginated listing call
type ContinuationToken = str

# Report-relative POSIX path (e.g., "actual/sample.png")
type RelativePath = str
