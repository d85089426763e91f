# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Read-only verification of a certificate store.

Checks the CA, the server identity and every client bundle, and collects
the outcome of each check into one report. An invalid certificate is a
reported outcome, not an exception; a missing CA makes every later check
fail instead of aborting the run.
"""

import datetime
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from cryptography import x509

from .certificates.parser import CertificateParser
from .certificates.serialization import load_certificate, load_private_key, public_keys_match
from .certificates.validator import CertificateValidator
from .errors import StoreIOFailure
from .provisioning.bundle import extract_bundle, find_identity_certificate
from .store import CertificateStore

logger = logging.getLogger(__name__)


class CheckStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    MISSING = "missing"


@dataclass
class CheckResult:
    """Outcome of one verification check."""

    name: str
    kind: str  # "ca", "server", "client" or "clients"
    status: CheckStatus
    detail: str = ""
    summary: List[str] = field(default_factory=list)
    required: bool = True

    @property
    def ok(self) -> bool:
        return self.status == CheckStatus.PASSED


@dataclass
class VerificationReport:
    """All checks attempted during one verification run."""

    checks: List[CheckResult] = field(default_factory=list)

    def add(self, check: CheckResult) -> CheckResult:
        self.checks.append(check)
        return check

    def by_kind(self, kind: str) -> List[CheckResult]:
        return [check for check in self.checks if check.kind == kind]

    @property
    def client_checks(self) -> List[CheckResult]:
        return self.by_kind("client")

    @property
    def valid_clients(self) -> int:
        return sum(1 for check in self.client_checks if check.ok)

    @property
    def invalid_clients(self) -> int:
        return sum(1 for check in self.client_checks if not check.ok)

    @property
    def ok(self) -> bool:
        return all(check.ok for check in self.checks if check.required)


class StoreVerifier:
    """Run every verification check against one store."""

    def __init__(self, store: CertificateStore, now: Optional[datetime.datetime] = None):
        self.store = store
        self.now = now
        self._ca_cert: Optional[x509.Certificate] = None

    def run(self) -> VerificationReport:
        report = VerificationReport()
        report.add(self.check_ca())
        report.add(self.check_server())
        for check in self.check_clients():
            report.add(check)

        logger.info(
            "Verified store %s: %d checks, %d valid / %d invalid clients",
            self.store.root, len(report.checks), report.valid_clients, report.invalid_clients,
        )
        return report

    @property
    def _validator(self) -> Optional[CertificateValidator]:
        if self._ca_cert is None:
            return None
        return CertificateValidator(self._ca_cert)

    def check_ca(self) -> CheckResult:
        store = self.store
        if not store.ca_cert_path.is_file():
            return CheckResult("CA", "ca", CheckStatus.MISSING, "CA certificate not found")
        if not store.ca_key_path.is_file():
            return CheckResult("CA", "ca", CheckStatus.MISSING, "CA private key not found")

        try:
            cert = load_certificate(store.read_bytes(store.ca_cert_path))
            key = load_private_key(store.read_bytes(store.ca_key_path))
        except (ValueError, TypeError, StoreIOFailure) as e:
            return CheckResult("CA", "ca", CheckStatus.FAILED, f"CA files unreadable: {e}")

        summary = CertificateParser.summarize(cert).describe()

        if not public_keys_match(key, cert):
            return CheckResult("CA", "ca", CheckStatus.FAILED, "CA key does not match CA certificate", summary)

        # Self-signed: the CA validates against itself
        result = CertificateValidator(cert).validate(cert, now=self.now)
        if not result.valid:
            return CheckResult("CA", "ca", CheckStatus.FAILED, result.error_message or "", summary)

        self._ca_cert = cert
        return CheckResult("CA", "ca", CheckStatus.PASSED, "Valid", summary)

    def check_server(self) -> CheckResult:
        store = self.store
        if not store.server_cert_path.is_file():
            return CheckResult("Server", "server", CheckStatus.MISSING, "Server certificate not found")
        if not store.server_key_path.is_file():
            return CheckResult("Server", "server", CheckStatus.MISSING, "Server private key not found")

        try:
            cert = load_certificate(store.read_bytes(store.server_cert_path))
            key = load_private_key(store.read_bytes(store.server_key_path))
        except (ValueError, TypeError, StoreIOFailure) as e:
            return CheckResult("Server", "server", CheckStatus.FAILED, f"Server files unreadable: {e}")

        summary = CertificateParser.summarize(cert).describe()
        if not public_keys_match(key, cert):
            return CheckResult(
                "Server", "server", CheckStatus.FAILED, "Server key does not match server certificate", summary,
            )
        return self._chain_check("Server", "server", cert, summary)

    def check_clients(self) -> List[CheckResult]:
        bundles = self.store.list_bundles()
        if not bundles:
            return [CheckResult(
                "Clients", "clients", CheckStatus.MISSING,
                "No client bundles found", required=False,
            )]
        return [self.check_bundle(path) for path in bundles]

    def check_bundle(self, archive_path) -> CheckResult:
        name = CertificateStore.bundle_name(archive_path)

        with self.store.workspace("verify") as workdir:
            try:
                files = extract_bundle(archive_path, workdir)
                cert_path = find_identity_certificate(files)
                cert = load_certificate(cert_path.read_bytes())
            except (ValueError, OSError, StoreIOFailure) as e:
                return CheckResult(name, "client", CheckStatus.FAILED, f"Unreadable bundle: {e}")

            summary = CertificateParser.summarize(cert).describe()
            check = self._chain_check(name, "client", cert, summary)
            if not check.ok:
                return check

            key_path = cert_path.with_suffix(".key")
            if key_path.is_file():
                try:
                    key = load_private_key(key_path.read_bytes())
                except (ValueError, TypeError) as e:
                    return CheckResult(name, "client", CheckStatus.FAILED, f"Unreadable key: {e}", summary)
                if not public_keys_match(key, cert):
                    return CheckResult(name, "client", CheckStatus.FAILED, "Key does not match certificate", summary)

        return check

    def _chain_check(self, name: str, kind: str, cert: x509.Certificate, summary: List[str]) -> CheckResult:
        validator = self._validator
        if validator is None:
            return CheckResult(name, kind, CheckStatus.FAILED, "Cannot verify: no valid CA", summary)

        result = validator.validate(cert, now=self.now)
        if not result.valid:
            return CheckResult(name, kind, CheckStatus.FAILED, result.error_message or "Invalid", summary)
        return CheckResult(name, kind, CheckStatus.PASSED, "Valid (signed by CA)", summary)


def verify_store(store: CertificateStore, now: Optional[datetime.datetime] = None) -> VerificationReport:
    """Verify a store without modifying it."""
    return StoreVerifier(store, now=now).run()
