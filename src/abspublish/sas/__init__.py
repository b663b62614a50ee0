"""Signed access — token issuance, entry-page patching and the client bootstrap.

Keeps a privately-gated report browsable: the issuer mints the SAS token
appended to the report URL, the patcher inlines the bootstrap script, and
the bootstrap scripts carry the token across navigations in the browser.
"""

from abspublish.sas.bootstrap import (
    bootstrap_source,
    capture_token,
    has_token,
    worker_source,
)
from abspublish.sas.issuer import (
    TOKEN_PARAMS,
    AccessToken,
    DelegatedSigner,
    SharedKeySigner,
    Signer,
    SigningWindow,
    create_signer,
    issue_token,
)
from abspublish.sas.patcher import is_patched, patch_entry_page

__all__ = [
    "TOKEN_PARAMS",
    "AccessToken",
    "DelegatedSigner",
    "SharedKeySigner",
    "Signer",
    "SigningWindow",
    "bootstrap_source",
    "capture_token",
    "create_signer",
    "has_token",
    "is_patched",
    "issue_token",
    "patch_entry_page",
    "worker_source",
]
