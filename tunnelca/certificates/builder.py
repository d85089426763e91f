# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Certificate generation utilities for the tunnel PKI.
"""

import datetime
from typing import List, Optional

from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, ExtensionOID
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa


SERVER_PURPOSE = "server"
CLIENT_PURPOSE = "client"


def generate_private_key(key_size: int = 2048) -> rsa.RSAPrivateKey:
    """Generate an RSA private key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def build_ca_certificate(
    private_key: rsa.RSAPrivateKey,
    subject: x509.Name,
    validity_days: int,
    serial_number: Optional[int] = None,
) -> x509.Certificate:
    """
    Build a self-signed root CA certificate.

    Args:
        private_key: CA private key
        subject: CA subject (also used as issuer)
        validity_days: Certificate validity period
        serial_number: Serial for the CA itself (random if omitted)

    Returns:
        Self-signed X.509 certificate
    """
    now = datetime.datetime.now(datetime.timezone.utc)

    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(private_key.public_key())
        .serial_number(serial_number or x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=validity_days))
        .add_extension(
            x509.BasicConstraints(ca=True, path_length=None),
            critical=True,
        )
        .add_extension(
            x509.KeyUsage(
                digital_signature=False,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
            critical=False,
        )
        .sign(private_key, hashes.SHA256())
    )


def build_csr(
    private_key: rsa.RSAPrivateKey,
    subject: x509.Name,
    san_names: List[x509.GeneralName],
) -> x509.CertificateSigningRequest:
    """
    Build a certificate signing request carrying a SAN extension.

    Args:
        private_key: Requester's private key
        subject: Requested subject
        san_names: Requested subject alternative names

    Returns:
        Signed CSR
    """
    builder = x509.CertificateSigningRequestBuilder().subject_name(subject)
    if san_names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName(san_names),
            critical=False,
        )
    return builder.sign(private_key, hashes.SHA256())


class IdentityCertificateBuilder:
    """Turn a CSR into an end-entity certificate signed by the CA."""

    def __init__(self, csr: x509.CertificateSigningRequest):
        """
        Initialize identity certificate builder.

        Args:
            csr: Signing request; its signature is checked at build time
        """
        self.csr = csr
        self.purpose = CLIENT_PURPOSE
        self.serial_number: Optional[int] = None
        self.validity_days: Optional[int] = None

    def set_purpose(self, purpose: str) -> "IdentityCertificateBuilder":
        """Set extended key usage: ``server`` or ``client``."""
        if purpose not in (SERVER_PURPOSE, CLIENT_PURPOSE):
            raise ValueError(f"Unknown certificate purpose: {purpose}")
        self.purpose = purpose
        return self

    def set_serial_number(self, serial_number: int) -> "IdentityCertificateBuilder":
        if serial_number <= 0:
            raise ValueError(f"Invalid serial number: {serial_number}")
        self.serial_number = serial_number
        return self

    def set_validity_days(self, validity_days: int) -> "IdentityCertificateBuilder":
        if validity_days <= 0:
            raise ValueError(f"Invalid validity period: {validity_days} days")
        self.validity_days = validity_days
        return self

    def build(
        self,
        ca_private_key: rsa.RSAPrivateKey,
        ca_certificate: x509.Certificate,
    ) -> x509.Certificate:
        """
        Build and sign the identity certificate.

        The SAN extension is copied from the request onto the certificate;
        request extensions are not carried over otherwise.

        Args:
            ca_private_key: CA private key for signing
            ca_certificate: CA certificate (issuer name source)

        Returns:
            Signed X.509 certificate

        Raises:
            ValueError: If serial/validity are unset or the CSR signature is bad
        """
        if self.serial_number is None or self.validity_days is None:
            raise ValueError("Serial number and validity period must be set before build()")
        if not self.csr.is_signature_valid:
            raise ValueError("CSR signature is invalid")

        now = datetime.datetime.now(datetime.timezone.utc)
        public_key = self.csr.public_key()

        builder = (
            x509.CertificateBuilder()
            .subject_name(self.csr.subject)
            .issuer_name(ca_certificate.subject)
            .public_key(public_key)
            .serial_number(self.serial_number)
            .not_valid_before(now)
            .not_valid_after(now + datetime.timedelta(days=self.validity_days))
            .add_extension(
                x509.BasicConstraints(ca=False, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=True,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=False,
                    crl_sign=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.ExtendedKeyUsage([self._extended_key_usage()]),
                critical=False,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(public_key),
                critical=False,
            )
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_private_key.public_key()),
                critical=False,
            )
        )

        builder = self._copy_requested_sans(builder)

        return builder.sign(ca_private_key, hashes.SHA256())

    def _extended_key_usage(self) -> x509.ObjectIdentifier:
        if self.purpose == SERVER_PURPOSE:
            return ExtendedKeyUsageOID.SERVER_AUTH
        return ExtendedKeyUsageOID.CLIENT_AUTH

    def _copy_requested_sans(self, builder: x509.CertificateBuilder) -> x509.CertificateBuilder:
        try:
            san = self.csr.extensions.get_extension_for_oid(ExtensionOID.SUBJECT_ALTERNATIVE_NAME)
        except x509.ExtensionNotFound:
            return builder
        return builder.add_extension(san.value, critical=san.critical)
