# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Command-line interface for tunnelca.

Usage:
    tunnelca issue ca [--cn NAME] [--days N] [--force]
    tunnelca issue server [--sans LIST] [--cn NAME] [--days N]
    tunnelca issue client [CN]
    tunnelca issue all-clients [--manifest FILE]
    tunnelca issue all [--force]
    tunnelca verify
    tunnelca list
    tunnelca clean --yes
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from . import __version__
from .config import load_settings
from .errors import CertStoreError
from .manager import HierarchyManager
from .provisioning.batch import BatchResult
from .verification import CheckStatus, VerificationReport

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1

_STATUS_MARKS = {
    CheckStatus.PASSED: "✓",
    CheckStatus.FAILED: "✗",
    CheckStatus.MISSING: "✗",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tunnelca",
        description="Provision the CA, server and client certificates for an FRP tunnel",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        help="Properties file with ssl_* settings (default: cert.properties)",
    )
    parser.add_argument("--store", type=Path, help="Certificate store directory (default: certs)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    issue = commands.add_parser("issue", help="Issue certificates")
    targets = issue.add_subparsers(dest="target", required=True)

    ca = targets.add_parser("ca", help="Generate the CA certificate")
    ca.add_argument("--cn", help="CA common name (default: ssl_ca_cn)")
    ca.add_argument("--days", type=int, help="CA validity in days (default: ssl_ca_days)")
    ca.add_argument("--force", action="store_true", help="Replace an existing CA")

    server = targets.add_parser("server", help="Generate the server certificate")
    server.add_argument("--sans", help="SAN list, e.g. DNS:localhost,IP:127.0.0.1 (default: ssl_server_sans)")
    server.add_argument("--cn", help="Server common name (default: ssl_server_cn)")
    server.add_argument("--days", type=int, help="Server validity in days (default: ssl_server_days)")

    client = targets.add_parser("client", help="Generate one client certificate bundle")
    client.add_argument("cn", nargs="?", help="Client common name (default: ssl_client_cn or this host's FQDN)")

    all_clients = targets.add_parser("all-clients", help="Generate bundles for every client in the clients list")
    all_clients.add_argument("--manifest", type=Path, help="Clients list file (default: clients.list)")

    everything = targets.add_parser("all", help="Generate CA, server and all client certificates")
    everything.add_argument("--force", action="store_true", help="Replace an existing CA")

    commands.add_parser("verify", help="Verify generated certificates")

    listing = commands.add_parser("list", help="List clients and bundles")
    listing.add_argument("--manifest", type=Path, help="Clients list file (default: clients.list)")

    clean = commands.add_parser("clean", help="Delete the whole certificate store")
    clean.add_argument("--yes", action="store_true", help="Confirm deletion")

    return parser


def print_batch(result: BatchResult) -> None:
    print()
    print(f"✓ Generated {len(result.issued)} client certificate bundle(s)")
    for failure in result.failures:
        print(f"  ✗ {failure.common_name}: {failure.reason}")
    if result.failures:
        print(f"❌ {len(result.failures)} of {result.attempted} client(s) failed")


def print_report(report: VerificationReport) -> None:
    print("Verifying certificates...")
    print("=" * 25)

    for check in report.checks:
        mark = _STATUS_MARKS[check.status]
        if check.kind == "client":
            print(f"  {mark} {check.name}" + ("" if check.ok else f" ({check.detail})"))
            continue

        if check.kind == "clients":
            print(f"Client bundles: {check.detail}")
            continue

        if check.summary:
            print(f"{check.name} Certificate:")
            for line in check.summary:
                print(f"  {line}")
        print(f"  {mark} {check.detail}")
        print()

    if report.client_checks:
        print()
        print(f"Total: {report.valid_clients} valid, {report.invalid_clients} invalid client bundle(s)")


def _on_client_result(common_name, bundle, error) -> None:
    if bundle is not None:
        print(f"  ✓ {common_name} -> {bundle.archive_path}")
    else:
        print(f"  ✗ {common_name}: {error}")


def run(args: argparse.Namespace, manager: HierarchyManager) -> int:
    settings = manager.settings

    if args.command == "issue":
        if args.target == "ca":
            print("Generating CA certificate...")
            ca = manager.issue_ca(common_name=args.cn, validity_days=args.days, overwrite=args.force)
            print("✓ CA certificate generated:")
            print(f"  CN: {ca.common_name}")
            print(f"  Files: {manager.store.ca_key_path}, {manager.store.ca_cert_path}")
            return EXIT_OK

        if args.target == "server":
            print("Generating server certificate...")
            server = manager.issue_server(sans=args.sans, common_name=args.cn, validity_days=args.days)
            print("✓ Server certificate generated:")
            print(f"  CN: {server.common_name}")
            print(f"  SANs: {server.identity.san_text}")
            print(f"  Files: {', '.join(path.name for path in server.files)}")
            return EXIT_OK

        if args.target == "client":
            common_name = args.cn if args.cn is not None else manager.default_client_name()
            print(f"Generating client certificate: {common_name}")
            bundle = manager.issue_client(common_name)
            print(f"  ✓ Client bundle generated: {bundle.archive_path}")
            for member in bundle.members:
                print(f"    - {member}")
            return EXIT_OK

        if args.target == "all-clients":
            manifest = args.manifest or settings.manifest_path
            print(f"Generating certificates for clients in {manifest}...")
            result = manager.issue_all_clients(manifest_path=manifest, on_result=_on_client_result)
            print_batch(result)
            return EXIT_OK if result.ok else EXIT_FAILURE

        if args.target == "all":
            print("Generating all certificates...")
            print(f"Output directory: {manager.store.root}")
            outcome = manager.issue_all(overwrite=args.force, on_result=_on_client_result)
            print(f"✓ CA certificate generated: {outcome.ca.common_name}")
            print(f"✓ Server certificate generated: {outcome.server.common_name}")
            if outcome.clients is None:
                print(f"Note: No clients list found at {settings.manifest_path}. Skipping client certificates.")
            else:
                print_batch(outcome.clients)
            return EXIT_OK if outcome.ok else EXIT_FAILURE

    if args.command == "verify":
        report = manager.verify()
        print_report(report)
        return EXIT_OK if report.ok else EXIT_FAILURE

    if args.command == "list":
        listing = manager.list_clients()
        if listing.manifest_found:
            print(f"Clients in {listing.manifest_path}:")
            for entry in listing.entries:
                state = "bundle present" if entry.has_bundle else "not issued"
                print(f"  - {entry.common_name} ({state})")
            if not listing.entries:
                print("  (none)")
        else:
            print(f"Clients list not found: {listing.manifest_path}")
        print(f"Bundles in {manager.store.clients_dir}:")
        for path in listing.bundles:
            print(f"  - {path.name}")
        if not listing.bundles:
            print("  (none)")
        return EXIT_OK

    if args.command == "clean":
        removed = manager.clean(confirm=args.yes)
        if removed:
            print(f"✓ Deleted certificate store {manager.store.root}")
        else:
            print(f"Nothing to delete: {manager.store.root} does not exist")
        return EXIT_OK

    raise AssertionError(f"Unhandled command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    manifest = getattr(args, "manifest", None)
    try:
        settings = load_settings(args.config, store_dir=args.store, manifest_path=manifest)
    except ValidationError as e:
        print(f"\n❌ Error: Invalid configuration:\n{e}", file=sys.stderr)
        return EXIT_FAILURE
    except CertStoreError as e:
        _print_error(e)
        return EXIT_FAILURE

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    manager = HierarchyManager(settings)

    try:
        return run(args, manager)
    except CertStoreError as e:
        _print_error(e)
        return EXIT_FAILURE


def _print_error(error: CertStoreError) -> None:
    print(f"\n❌ Error: {error}", file=sys.stderr)
    if error.remediation:
        print(f"   {error.remediation}", file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
