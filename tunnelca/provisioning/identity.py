# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Identity issuance shared by server and client certificates.

Workflow:
1. Generate identity keypair
2. Build CSR with subject fields and SAN extension
3. Sign CSR with the CA, re-applying the SAN extension
4. Produce combined PEM and PKCS12 encodings
"""

from dataclasses import dataclass, field
from typing import List, Optional

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa

from ..certificates.builder import build_csr, generate_private_key
from ..certificates.names import build_subject, format_san_list
from ..certificates.serialization import (
    certificate_to_pem,
    combined_pem,
    export_pkcs12,
    private_key_to_pem,
)
from ..config import SubjectFields
from ..errors import EngineFailure
from .authority import CertificateAuthority


@dataclass
class IssuedIdentity:
    """A key and certificate produced together from one CSR signing."""

    common_name: str
    purpose: str
    private_key: rsa.RSAPrivateKey
    certificate: x509.Certificate
    ca_certificate: x509.Certificate
    san_names: List[x509.GeneralName] = field(default_factory=list)

    @property
    def key_pem(self) -> bytes:
        return private_key_to_pem(self.private_key)

    @property
    def cert_pem(self) -> bytes:
        return certificate_to_pem(self.certificate)

    @property
    def ca_pem(self) -> bytes:
        return certificate_to_pem(self.ca_certificate)

    @property
    def combined_pem(self) -> bytes:
        return combined_pem(self.certificate, self.private_key)

    @property
    def san_text(self) -> str:
        return format_san_list(self.san_names)

    def to_pkcs12(self) -> bytes:
        """Password-less PKCS12 with key, certificate and CA chain."""
        try:
            return export_pkcs12(
                self.common_name,
                self.private_key,
                self.certificate,
                [self.ca_certificate],
            )
        except (ValueError, TypeError) as e:
            raise EngineFailure(f"PKCS12 export failed for '{self.common_name}': {e}")


def issue_identity(
    ca: CertificateAuthority,
    common_name: str,
    san_names: List[x509.GeneralName],
    purpose: str,
    validity_days: int,
    subject_fields: Optional[SubjectFields] = None,
    key_size: int = 2048,
) -> IssuedIdentity:
    """
    Generate a keypair and have the CA sign a certificate for it.

    Args:
        ca: Issuing certificate authority
        common_name: Identity CN
        san_names: Subject alternative names
        purpose: ``server`` or ``client``
        validity_days: Certificate validity period
        subject_fields: Optional C/ST/L/O fields
        key_size: RSA key size in bits

    Returns:
        IssuedIdentity with matched key and certificate

    Raises:
        InvalidInput: If the subject cannot be encoded
        EngineFailure: If key generation, CSR creation or signing fails
    """
    subject = build_subject(common_name, subject_fields)

    try:
        private_key = generate_private_key(key_size)
        csr = build_csr(private_key, subject, san_names)
    except (ValueError, TypeError) as e:
        raise EngineFailure(f"Failed to create request for '{common_name}': {e}")

    certificate = ca.sign(csr, purpose=purpose, validity_days=validity_days)

    return IssuedIdentity(
        common_name=common_name,
        purpose=purpose,
        private_key=private_key,
        certificate=certificate,
        ca_certificate=ca.certificate,
        san_names=list(san_names),
    )
