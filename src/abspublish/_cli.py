"""abspublish CLI — abspublish publish / fetch / sign / inspect.

Entry point for the ``abspublish`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _add_common(parser: argparse.ArgumentParser) -> None:
    """Flags shared by the commands that talk to storage."""
    parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    parser.add_argument("--config", dest="config_file", default=None, help="Config file, relative to root")
    parser.add_argument("--url", default=None, help="Blob service endpoint")
    parser.add_argument("--container", dest="container_name", default=None, help="Container name")
    parser.add_argument("--account-name", default=None, help="Storage account name")
    parser.add_argument(
        "--sas-expiry-hour", type=float, default=None, help="Token lifetime in hours",
    )
    parser.add_argument(
        "--use-default-credential", action="store_true",
        help="Sign in with DefaultAzureCredential and sign with a user delegation key",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every transferred file")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the abspublish CLI."""
    parser = argparse.ArgumentParser(
        prog="abspublish",
        description="Publish static reports to Azure Blob Storage behind SAS links.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # abspublish publish
    publish_parser = subparsers.add_parser("publish", help="Upload a report and print its URL")
    publish_parser.add_argument("key", help="Remote key (e.g. a commit hash)")
    _add_common(publish_parser)
    publish_parser.add_argument("--working-dir", default=".reg", help="Report directory")
    publish_parser.add_argument("--no-emit", action="store_true", help="Do not upload anything")

    # abspublish fetch
    fetch_parser = subparsers.add_parser("fetch", help="Download a published snapshot")
    fetch_parser.add_argument("key", help="Remote key to fetch")
    _add_common(fetch_parser)
    fetch_parser.add_argument("--working-dir", default=".reg", help="Report directory")

    # abspublish sign
    sign_parser = subparsers.add_parser("sign", help="Print a fresh SAS token")
    _add_common(sign_parser)

    # abspublish inspect
    inspect_parser = subparsers.add_parser("inspect", help="Check the token of a report URL")
    inspect_parser.add_argument("url", help="Report URL")

    return parser


def _get_version() -> str:
    """Get the package version."""
    from abspublish import __version__

    return __version__


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    """Config overrides from CLI flags; unset flags are left to the config file."""
    overrides: dict[str, object] = {
        "url": args.url,
        "container_name": args.container_name,
        "account_name": args.account_name,
        "sas_expiry_hour": args.sas_expiry_hour,
    }
    if args.use_default_credential:
        overrides["credential_mode"] = "delegated"
    return overrides


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from abspublish._errors import AbsPublishError
    from abspublish.app import fetch, inspect_url, publish, sign

    try:
        if args.command == "publish":
            result = publish(
                args.key,
                args.root,
                working_dir=args.working_dir,
                config_file=args.config_file,
                no_emit=args.no_emit,
                verbose=args.verbose,
                **_overrides(args),
            )
            if result.report_url:
                print(result.report_url)
        elif args.command == "fetch":
            fetch(
                args.key,
                args.root,
                working_dir=args.working_dir,
                config_file=args.config_file,
                verbose=args.verbose,
                **_overrides(args),
            )
        elif args.command == "sign":
            token = sign(
                args.root, config_file=args.config_file, verbose=args.verbose, **_overrides(args),
            )
            if token is None:
                sys.exit(1)
            print(token.query)
        elif args.command == "inspect":
            report = inspect_url(args.url)
            expiry = report.expires_on.isoformat() if report.expires_on else "unknown"
            state = "expired" if report.expired else "valid"
            print(f"signed={report.signed} expires_on={expiry} state={state}")
            if not report.signed or report.expired:
                sys.exit(1)
    except AbsPublishError as exc:
        print(f"abspublish: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
