# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Certificate authority for the tunnel PKI.

One CA per store. It is created once by self-signing and afterwards only its
serial counter changes.
"""

import logging
import secrets
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa

from ..certificates.builder import (
    IdentityCertificateBuilder,
    build_ca_certificate,
    generate_private_key,
)
from ..certificates.names import build_subject
from ..certificates.serialization import (
    certificate_to_pem,
    load_certificate,
    load_private_key,
    private_key_to_pem,
    public_keys_match,
)
from ..errors import EngineFailure, PrerequisiteMissing, StoreIOFailure
from ..store import CertificateStore

logger = logging.getLogger(__name__)


class CertificateAuthority:
    """
    Root of trust for a certificate store.

    Holds the CA key and certificate in memory and allocates serial numbers
    from the persisted ``ca.srl`` counter.
    """

    def __init__(
        self,
        store: CertificateStore,
        private_key: rsa.RSAPrivateKey,
        certificate: x509.Certificate,
    ):
        self.store = store
        self.private_key = private_key
        self.certificate = certificate

    @property
    def common_name(self) -> str:
        attributes = self.certificate.subject.get_attributes_for_oid(x509.oid.NameOID.COMMON_NAME)
        return attributes[0].value if attributes else ""

    @classmethod
    def create(
        cls,
        store: CertificateStore,
        common_name: str,
        validity_days: int,
        key_size: int = 2048,
    ) -> "CertificateAuthority":
        """
        Generate a new self-signed CA and persist it.

        Any existing CA files are replaced in place.

        Args:
            store: Target store
            common_name: CA subject CN
            validity_days: CA certificate validity period
            key_size: RSA key size in bits

        Returns:
            The new CA

        Raises:
            EngineFailure: If key generation or self-signing fails
            StoreIOFailure: If the CA files cannot be written
        """
        subject = build_subject(common_name)

        try:
            private_key = generate_private_key(key_size)
            certificate = build_ca_certificate(private_key, subject, validity_days)
        except (ValueError, TypeError) as e:
            raise EngineFailure(f"Failed to generate CA '{common_name}': {e}")

        store.write_bytes(store.ca_key_path, private_key_to_pem(private_key), mode=0o600)
        store.write_bytes(store.ca_cert_path, certificate_to_pem(certificate))
        initial_serial = secrets.randbits(63) + 1
        store.write_bytes(store.ca_serial_path, _format_serial(initial_serial))

        logger.info(
            "Created CA '%s' valid for %d days (serial counter %X)",
            common_name, validity_days, initial_serial,
        )
        return cls(store, private_key, certificate)

    @classmethod
    def load(cls, store: CertificateStore) -> "CertificateAuthority":
        """
        Load the CA from the store.

        Raises:
            PrerequisiteMissing: If ca.key or ca.crt is absent
            EngineFailure: If the files cannot be parsed or do not match
        """
        if not store.has_ca():
            raise PrerequisiteMissing(
                "CA certificate not found",
                path=store.ca_cert_path,
                remediation="Generate CA first: tunnelca issue ca",
            )

        key_data = store.read_bytes(store.ca_key_path)
        cert_data = store.read_bytes(store.ca_cert_path)

        try:
            private_key = load_private_key(key_data)
            certificate = load_certificate(cert_data)
        except (ValueError, TypeError) as e:
            raise EngineFailure(f"Failed to load CA: {e}", path=store.root)

        if not public_keys_match(private_key, certificate):
            raise EngineFailure(
                "CA private key does not match CA certificate",
                path=store.ca_key_path,
                remediation="Re-issue the CA with: tunnelca issue ca --force",
            )

        return cls(store, private_key, certificate)

    def next_serial(self) -> int:
        """
        Allocate the next serial number and persist the counter.

        The counter file holds the last serial handed out, as hex.
        """
        path = self.store.ca_serial_path
        if path.is_file():
            text = self.store.read_bytes(path).decode("ascii", errors="replace").strip()
            try:
                current = int(text, 16)
            except ValueError:
                raise StoreIOFailure(f"Corrupt serial counter '{text}'", path=path)
        else:
            logger.warning("Serial counter missing, starting a new one at %s", path)
            current = secrets.randbits(63)

        serial = current + 1
        self.store.write_bytes(path, _format_serial(serial))
        return serial

    def sign(
        self,
        csr: x509.CertificateSigningRequest,
        purpose: str,
        validity_days: int,
        serial_number: Optional[int] = None,
    ) -> x509.Certificate:
        """
        Sign a CSR, copying its SAN extension onto the certificate.

        Args:
            csr: Signing request
            purpose: ``server`` or ``client``
            validity_days: Certificate validity period
            serial_number: Explicit serial (allocated from the counter if omitted)

        Returns:
            Signed certificate

        Raises:
            EngineFailure: If signing fails
        """
        if serial_number is None:
            serial_number = self.next_serial()

        try:
            certificate = (
                IdentityCertificateBuilder(csr)
                .set_purpose(purpose)
                .set_serial_number(serial_number)
                .set_validity_days(validity_days)
                .build(self.private_key, self.certificate)
            )
        except (ValueError, TypeError) as e:
            raise EngineFailure(f"Failed to sign {purpose} certificate: {e}")

        logger.debug(
            "Signed %s certificate %s serial %X",
            purpose, csr.subject.rfc4514_string(), serial_number,
        )
        return certificate


def _format_serial(serial: int) -> bytes:
    text = f"{serial:X}"
    if len(text) % 2:
        text = "0" + text
    return (text + "\n").encode("ascii")
