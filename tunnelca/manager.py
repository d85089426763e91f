# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Certificate hierarchy manager.

Orchestrates CA creation, server and client issuance, verification and
store lifecycle for one store directory, using an explicit Settings
object for every default.
"""

import datetime
import logging
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from .certificates.names import parse_san_list, sanitize_name
from .config import Settings
from .errors import CertStoreError, ConfirmationRequired, InvalidInput, OverwriteRefused
from .provisioning.authority import CertificateAuthority
from .provisioning.batch import BatchResult, issue_batch, read_manifest
from .provisioning.bundle import CertificateBundle
from .provisioning.client import issue_client
from .provisioning.server import ServerIdentity, issue_server
from .store import CertificateStore
from .verification import VerificationReport, verify_store

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, Optional[CertificateBundle], Optional[CertStoreError]], None]


@dataclass
class ManifestEntry:
    """A manifest client and whether its bundle exists."""

    common_name: str
    sanitized_name: str
    has_bundle: bool


@dataclass
class ClientListing:
    """Manifest entries and bundles present in the store."""

    manifest_path: Path
    manifest_found: bool
    entries: List[ManifestEntry] = field(default_factory=list)
    bundles: List[Path] = field(default_factory=list)


@dataclass
class IssueAllResult:
    """Outcome of issuing CA, server and all clients."""

    ca: CertificateAuthority
    server: ServerIdentity
    clients: Optional[BatchResult] = None

    @property
    def ok(self) -> bool:
        return self.clients is None or self.clients.ok


class HierarchyManager:
    """
    Main certificate hierarchy service.

    Each public method maps to one CLI operation.
    """

    def __init__(self, settings: Settings):
        """
        Initialize manager with settings.

        Args:
            settings: Validated settings; store_dir selects the store
        """
        self.settings = settings
        self.store = CertificateStore(settings.store_dir)

    def load_ca(self) -> CertificateAuthority:
        return CertificateAuthority.load(self.store)

    def issue_ca(
        self,
        common_name: Optional[str] = None,
        validity_days: Optional[int] = None,
        overwrite: bool = False,
    ) -> CertificateAuthority:
        """
        Create the store CA.

        Raises:
            InvalidInput: If the CA would not outlive server certificates
            OverwriteRefused: If a CA exists and overwrite is False
        """
        days = _resolve_days(validity_days, self.settings.ca_days)
        if days <= self.settings.server_days:
            raise InvalidInput(
                f"CA validity of {days} days must exceed server validity of {self.settings.server_days} days",
                remediation="Use a larger --days or lower ssl_server_days",
            )

        if self.store.has_ca() and not overwrite:
            raise OverwriteRefused(
                "A CA already exists; replacing it invalidates every issued certificate",
                path=self.store.ca_cert_path,
            )
        if self.store.has_ca():
            logger.warning("Replacing existing CA in %s", self.store.root)

        return CertificateAuthority.create(
            self.store,
            common_name=common_name or self.settings.ca_cn,
            validity_days=days,
            key_size=self.settings.key_size,
        )

    def issue_server(
        self,
        sans: Optional[str] = None,
        common_name: Optional[str] = None,
        validity_days: Optional[int] = None,
    ) -> ServerIdentity:
        """
        Issue the server identity; requires an existing CA.

        Raises:
            InvalidInput: If the lifetime is outside client_days..ca_days
                or would outlive the CA certificate
        """
        days = _resolve_days(validity_days, self.settings.server_days)
        if not self.settings.client_days < days < self.settings.ca_days:
            raise InvalidInput(
                f"Server validity of {days} days must be between client validity "
                f"({self.settings.client_days}) and CA validity ({self.settings.ca_days})",
                remediation="Pick a --days value inside that range",
            )

        san_names = parse_san_list(sans or self.settings.server_sans)
        ca = self.load_ca()
        _check_within_ca(ca, "Server", days)
        return issue_server(
            ca,
            common_name=common_name or self.settings.server_cn,
            san_names=san_names,
            validity_days=days,
            subject_fields=self.settings.subject,
            key_size=self.settings.key_size,
        )

    def default_client_name(self) -> str:
        """Configured client CN, or this host's fully qualified name."""
        return self.settings.client_cn or socket.getfqdn()

    def issue_client(
        self,
        common_name: Optional[str] = None,
        ca: Optional[CertificateAuthority] = None,
    ) -> CertificateBundle:
        """Issue one client bundle; requires an existing CA."""
        if common_name is None:
            common_name = self.default_client_name()
        ca = ca or self.load_ca()
        _check_within_ca(ca, "Client", self.settings.client_days)
        return issue_client(
            ca,
            common_name,
            validity_days=self.settings.client_days,
            subject_fields=self.settings.subject,
            key_size=self.settings.key_size,
            install_dir=self.settings.client_install_dir,
        )

    def issue_all_clients(
        self,
        manifest_path: Optional[Path] = None,
        on_result: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """
        Issue a bundle for every manifest entry.

        The CA and manifest must exist; individual entry failures are
        collected in the result.
        """
        ca = self.load_ca()
        manifest = read_manifest(manifest_path or self.settings.manifest_path)
        logger.info("Issuing %d client certificates from %s", len(manifest), manifest.path)
        return issue_batch(
            manifest,
            lambda common_name: self.issue_client(common_name, ca=ca),
            on_result=on_result,
        )

    def issue_all(
        self,
        overwrite: bool = False,
        on_result: Optional[ProgressCallback] = None,
    ) -> IssueAllResult:
        """CA, then server, then all manifest clients if a manifest exists."""
        ca = self.issue_ca(overwrite=overwrite)
        server = self.issue_server()

        clients = None
        if Path(self.settings.manifest_path).is_file():
            clients = self.issue_all_clients(on_result=on_result)
        else:
            logger.info("No clients list at %s, skipping client certificates", self.settings.manifest_path)

        return IssueAllResult(ca=ca, server=server, clients=clients)

    def verify(self) -> VerificationReport:
        return verify_store(self.store)

    def list_clients(self) -> ClientListing:
        """Manifest entries and existing bundles; no mutation."""
        manifest_path = Path(self.settings.manifest_path)
        listing = ClientListing(
            manifest_path=manifest_path,
            manifest_found=manifest_path.is_file(),
            bundles=self.store.list_bundles(),
        )

        if listing.manifest_found:
            for common_name in read_manifest(manifest_path):
                sanitized = sanitize_name(common_name)
                listing.entries.append(ManifestEntry(
                    common_name=common_name,
                    sanitized_name=sanitized,
                    has_bundle=self.store.bundle_path(sanitized).is_file(),
                ))

        return listing

    def clean(self, confirm: bool = False) -> bool:
        """
        Delete the whole store.

        Raises:
            ConfirmationRequired: If confirm is not True
        """
        if confirm is not True:
            raise ConfirmationRequired(
                "Refusing to delete the certificate store without confirmation",
                path=self.store.root,
            )
        return self.store.wipe()


def _resolve_days(validity_days: Optional[int], default: int) -> int:
    if validity_days is None:
        return default
    if validity_days <= 0:
        raise InvalidInput(f"Validity must be a positive number of days, got {validity_days}")
    return validity_days


def _check_within_ca(ca: CertificateAuthority, label: str, validity_days: int) -> None:
    """Refuse lifetimes that end after the CA certificate expires."""
    ca_expiry = ca.certificate.not_valid_after_utc
    expiry = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(days=validity_days)
    if expiry > ca_expiry:
        raise InvalidInput(
            f"{label} certificate valid for {validity_days} days would outlive the CA "
            f"(CA expires {ca_expiry:%Y-%m-%d})",
            remediation="Use a shorter lifetime or re-issue the CA with: tunnelca issue ca --force",
        )
