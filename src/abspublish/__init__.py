"""abspublish — publish static reports to Azure Blob Storage behind SAS links.

Uploads a report directory to a blob container and, for private
containers, keeps the report browsable: a read-only, time-boxed SAS token
is appended to the report URL, and a small bootstrap script re-attaches it
to every in-page navigation and to the offline cache worker's fetches.

Quick start::

    import abspublish

    result = abspublish.publish("build-42", "my-project/")
    print(result.report_url)

Entry points::

    abspublish.publish(key, root)     # Upload and sign
    abspublish.fetch(key, root)       # Download the previous snapshot
    abspublish.sign(root)             # Mint a token only

"""

__version__ = "0.1.0.dev0"
__all__ = [
    "PublishConfig",
    "__version__",
    "fetch",
    "inspect_url",
    "publish",
    "sign",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import abspublish`` fast; the Azure SDK is only imported when
    an entry point is first used.
    """
    if name == "PublishConfig":
        from abspublish.config import PublishConfig

        return PublishConfig

    if name in ("publish", "fetch", "sign", "inspect_url"):
        from abspublish import app

        return getattr(app, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
