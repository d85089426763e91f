# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Server identity issuance.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from cryptography import x509

from ..certificates.builder import SERVER_PURPOSE
from ..config import SubjectFields
from .authority import CertificateAuthority
from .identity import IssuedIdentity, issue_identity

logger = logging.getLogger(__name__)


@dataclass
class ServerIdentity:
    """Issued server identity and the files written for it."""

    identity: IssuedIdentity
    key_path: Path
    cert_path: Path
    combined_path: Path
    p12_path: Path

    @property
    def common_name(self) -> str:
        return self.identity.common_name

    @property
    def files(self) -> List[Path]:
        return [self.key_path, self.cert_path, self.combined_path, self.p12_path]


def issue_server(
    ca: CertificateAuthority,
    common_name: str,
    san_names: List[x509.GeneralName],
    validity_days: int,
    subject_fields: Optional[SubjectFields] = None,
    key_size: int = 2048,
) -> ServerIdentity:
    """
    Issue the server certificate and write it to the CA's store.

    Previous server material is overwritten.

    Args:
        ca: Issuing certificate authority
        common_name: Server CN
        san_names: Subject alternative names for the server
        validity_days: Certificate validity period
        subject_fields: Optional C/ST/L/O fields
        key_size: RSA key size in bits

    Returns:
        ServerIdentity with output paths
    """
    store = ca.store

    identity = issue_identity(
        ca,
        common_name=common_name,
        san_names=san_names,
        purpose=SERVER_PURPOSE,
        validity_days=validity_days,
        subject_fields=subject_fields,
        key_size=key_size,
    )
    p12 = identity.to_pkcs12()

    store.write_bytes(store.server_key_path, identity.key_pem, mode=0o600)
    store.write_bytes(store.server_cert_path, identity.cert_pem)
    store.write_bytes(store.server_combined_path, identity.combined_pem, mode=0o600)
    store.write_bytes(store.server_p12_path, p12, mode=0o600)

    logger.info("Issued server certificate '%s' (SANs: %s)", common_name, identity.san_text)

    return ServerIdentity(
        identity=identity,
        key_path=store.server_key_path,
        cert_path=store.server_cert_path,
        combined_path=store.server_combined_path,
        p12_path=store.server_p12_path,
    )
