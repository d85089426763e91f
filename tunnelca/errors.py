# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Error types raised by certificate store operations.

Every error carries a human-readable message, the offending path or common
name where there is one, and a remediation hint the CLI prints before
exiting.
"""

from pathlib import Path
from typing import Optional, Union


class CertStoreError(Exception):
    """Base class for all tunnelca failures."""

    default_remediation: Optional[str] = None

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        remediation: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = path
        self.remediation = remediation or self.default_remediation

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.message} ({self.path})"
        return self.message


class PrerequisiteMissing(CertStoreError):
    """A CA, manifest or other required input is absent."""


class InvalidInput(CertStoreError):
    """Empty or malformed common name, SAN list or argument."""


class EngineFailure(CertStoreError):
    """The cryptography backend failed to generate, sign or export."""


class StoreIOFailure(CertStoreError):
    """Filesystem read, write or archive failure inside the store."""

    default_remediation = "Check that the store directory exists and is writable"


class OverwriteRefused(InvalidInput):
    """Issuance would replace an existing CA without explicit consent."""

    default_remediation = "Re-run with --force to replace the existing CA"


class NameCollision(InvalidInput):
    """Two distinct common names sanitize to the same bundle name."""

    default_remediation = "Rename one of the clients so their bundle names differ"


class ConfirmationRequired(InvalidInput):
    """A destructive operation was requested without confirmation."""

    default_remediation = "Re-run with --yes to confirm"
