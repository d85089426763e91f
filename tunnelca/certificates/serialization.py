# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
PEM and PKCS12 encoding helpers.
"""

from typing import List, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12


def certificate_to_pem(cert: x509.Certificate) -> bytes:
    """Encode certificate as PEM."""
    return cert.public_bytes(serialization.Encoding.PEM)


def private_key_to_pem(key: rsa.RSAPrivateKey, password: Optional[bytes] = None) -> bytes:
    """
    Encode private key as PKCS8 PEM.

    Args:
        key: Private key to encode
        password: Optional password for encryption

    Returns:
        PEM bytes
    """
    encryption = (
        serialization.BestAvailableEncryption(password)
        if password
        else serialization.NoEncryption()
    )
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    )


def combined_pem(cert: x509.Certificate, key: rsa.RSAPrivateKey) -> bytes:
    """Certificate followed by its private key, as one PEM document."""
    return certificate_to_pem(cert) + private_key_to_pem(key)


def export_pkcs12(
    name: str,
    key: rsa.RSAPrivateKey,
    cert: x509.Certificate,
    chain: List[x509.Certificate],
) -> bytes:
    """
    Export key, certificate and CA chain as a password-less PKCS12 archive.

    Args:
        name: Friendly name stored in the archive
        key: Identity private key
        cert: Identity certificate
        chain: CA certificates to include

    Returns:
        DER-encoded PKCS12 bytes
    """
    return pkcs12.serialize_key_and_certificates(
        name=name.encode("utf-8"),
        key=key,
        cert=cert,
        cas=chain,
        encryption_algorithm=serialization.NoEncryption(),
    )


def load_certificate(data: bytes) -> x509.Certificate:
    """Load a PEM certificate."""
    return x509.load_pem_x509_certificate(data)


def load_private_key(data: bytes, password: Optional[bytes] = None) -> rsa.RSAPrivateKey:
    """Load a PEM private key."""
    return serialization.load_pem_private_key(data, password=password)


def public_keys_match(key: rsa.RSAPrivateKey, cert: x509.Certificate) -> bool:
    """Check that a private key belongs to a certificate."""
    def spki(public_key) -> bytes:
        return public_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    return spki(key.public_key()) == spki(cert.public_key())
