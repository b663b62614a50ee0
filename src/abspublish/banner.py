"""Run summary — status output printed after publish, fetch and sign.

Mirrors the startup banner style: a header line with a mode badge and a
tree of status lines.  Signatures are never printed here; the report URL
is printed in full because it is the deliverable.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from abspublish.console import BOLD, COLOR, CYAN, DIM, GREEN, MAGENTA, RESET, YELLOW

if TYPE_CHECKING:
    from abspublish.observability.log import TransferStats
    from abspublish.sas.issuer import AccessToken


_MODE_STYLES: dict[str, tuple[str, str]] = {
    "publish": (GREEN, "publish"),
    "fetch": (CYAN, "fetch"),
    "sign": (MAGENTA, "sign"),
}


def _mode_badge(mode: str) -> str:
    """Return a styled [mode] badge."""
    color, label = _MODE_STYLES.get(mode, (DIM, mode))
    return f"{color}[{label}]{RESET}"


def _format_size(size: int) -> str:
    """Human-readable byte count."""
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not COLOR:
        return url
    return f"\033]8;;{url}\033\\{BOLD}{CYAN}{url}{RESET}\033]8;;\033\\"


def print_summary(
    mode: str,
    *,
    container: str,
    key: str | None = None,
    files: int = 0,
    report_url: str | None = None,
    token: AccessToken | None = None,
    stats: TransferStats | None = None,
    elapsed_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print a run summary to stderr.

    Args:
        mode: One of ``"publish"``, ``"fetch"``, ``"sign"``.
        container: Target container name.
        key: Report key, when the run had one.
        files: Number of files transferred.
        report_url: Browsable entry-page URL.
        token: Issued token (only its window is shown).
        stats: Event totals of the run; adds transferred bytes and listing pages.
        elapsed_ms: Wall-clock time of the run.
        warnings: Optional list of warning messages to display.

    """
    from abspublish import __version__

    header = f"  {BOLD}abspublish{RESET} {DIM}v{__version__}{RESET}  {_mode_badge(mode)}"
    lines: list[str] = ["", header, f"  {DIM}{'─' * 43}{RESET}"]

    target = f"{container}/{key}" if key else container
    lines.append(f"  {DIM}├─{RESET} container: {MAGENTA}{target}{RESET}")

    if mode != "sign":
        files_label = "file" if files == 1 else "files"
        timing = f" {DIM}in {elapsed_ms:.0f}ms{RESET}" if elapsed_ms > 0 else ""
        verb = "uploaded" if mode == "publish" else "downloaded"
        size = ""
        if stats is not None:
            sent = stats.bytes_uploaded if mode == "publish" else stats.bytes_downloaded
            size = f" {DIM}({_format_size(sent)}){RESET}"
        lines.append(f"  {DIM}├─{RESET} {files} {files_label} {verb}{size}{timing}")
        if stats is not None and stats.pages_listed:
            pages_label = "page" if stats.pages_listed == 1 else "pages"
            lines.append(
                f"  {DIM}├─{RESET} {stats.pages_listed} listing {pages_label}, "
                f"{stats.placeholders_skipped} folder placeholders skipped"
            )

    if token is not None:
        lines.append(
            f"  {DIM}└─{RESET} {GREEN}signed{RESET} "
            f"{DIM}{token.starts_on.isoformat()} → {token.expires_on.isoformat()}{RESET}"
        )
    else:
        lines.append(f"  {DIM}└─{RESET} unsigned")

    if report_url:
        lines.append("")
        lines.append(f"  {_clickable_url(report_url)}")

    if warnings:
        lines.append("")
        lines.extend(f"  {YELLOW}!{RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)
