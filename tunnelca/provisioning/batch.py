# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Batch client issuance from a manifest file.

Manifest format: one common name per line. Blank lines and lines starting
with ``#`` are ignored; surrounding whitespace is trimmed.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from ..errors import CertStoreError, PrerequisiteMissing, StoreIOFailure
from .bundle import CertificateBundle

logger = logging.getLogger(__name__)


@dataclass
class ClientManifest:
    """Ordered client names read from a manifest file."""

    path: Path
    entries: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


@dataclass
class BatchFailure:
    """One manifest entry that could not be issued."""

    common_name: str
    error: CertStoreError

    @property
    def reason(self) -> str:
        return str(self.error)


@dataclass
class BatchResult:
    """Outcome of a batch issuance, in manifest order."""

    issued: List[CertificateBundle] = field(default_factory=list)
    failures: List[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def attempted(self) -> int:
        return len(self.issued) + len(self.failures)

    @property
    def identifiers(self) -> List[str]:
        return [bundle.sanitized_name for bundle in self.issued]


def parse_manifest(text: str) -> List[str]:
    """Extract client names from manifest text."""
    entries = []
    for line in text.splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        entries.append(entry)
    return entries


def read_manifest(path: Path) -> ClientManifest:
    """
    Read a client manifest.

    Raises:
        PrerequisiteMissing: If the manifest file does not exist
        StoreIOFailure: If it exists but cannot be read
    """
    path = Path(path)
    if not path.is_file():
        raise PrerequisiteMissing(
            "Clients list file not found",
            path=path,
            remediation="Create the clients list with one client hostname per line",
        )

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StoreIOFailure(f"Cannot read clients list: {e}", path=path)

    return ClientManifest(path=path, entries=parse_manifest(text))


def issue_batch(
    manifest: ClientManifest,
    issue_one: Callable[[str], CertificateBundle],
    on_result: Optional[Callable[[str, Optional[CertificateBundle], Optional[CertStoreError]], None]] = None,
) -> BatchResult:
    """
    Issue one bundle per manifest entry, continuing past failures.

    Args:
        manifest: Client names in issuance order
        issue_one: Single-client issuer
        on_result: Optional progress callback (cn, bundle, error)

    Returns:
        BatchResult with issued bundles and per-entry failures
    """
    result = BatchResult()

    for common_name in manifest:
        try:
            bundle = issue_one(common_name)
        except CertStoreError as e:
            logger.warning("Client '%s' failed: %s", common_name, e)
            result.failures.append(BatchFailure(common_name=common_name, error=e))
            if on_result:
                on_result(common_name, None, e)
            continue

        result.issued.append(bundle)
        if on_result:
            on_result(common_name, bundle, None)

    logger.info(
        "Batch issuance from %s: %d issued, %d failed",
        manifest.path, len(result.issued), len(result.failures),
    )
    return result
