# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Client identity issuance.
"""

import logging
from typing import Optional

from cryptography import x509

from ..certificates.builder import CLIENT_PURPOSE
from ..certificates.names import common_name_of, normalize_common_name, sanitize_name
from ..config import SubjectFields
from ..errors import InvalidInput, NameCollision, StoreIOFailure
from .authority import CertificateAuthority
from .bundle import CertificateBundle, read_bundle_certificate, write_bundle
from .identity import issue_identity

logger = logging.getLogger(__name__)


def check_bundle_collision(ca: CertificateAuthority, common_name: str, sanitized_name: str) -> None:
    """
    Refuse to replace a bundle that belongs to a different common name.

    Re-issuing for the same CN is allowed and replaces the old bundle.

    Raises:
        NameCollision: If the existing bundle was issued for another CN
    """
    archive_path = ca.store.bundle_path(sanitized_name)
    if not archive_path.exists():
        return

    try:
        existing_cn = common_name_of(read_bundle_certificate(ca.store, archive_path))
    except StoreIOFailure as e:
        logger.warning("Existing bundle %s is unreadable and will be replaced: %s", archive_path.name, e)
        return

    if existing_cn is not None and existing_cn != common_name:
        raise NameCollision(
            f"Client '{common_name}' and existing client '{existing_cn}' "
            f"both map to bundle name '{sanitized_name}'",
            path=archive_path,
        )


def issue_client(
    ca: CertificateAuthority,
    common_name: Optional[str],
    validity_days: int,
    subject_fields: Optional[SubjectFields] = None,
    key_size: int = 2048,
    install_dir: str = "/etc/frp/ssl",
) -> CertificateBundle:
    """
    Issue a client certificate and package it as a bundle.

    The SAN is a single DNS entry equal to the common name.

    Args:
        ca: Issuing certificate authority
        common_name: Client CN
        validity_days: Certificate validity period
        subject_fields: Optional C/ST/L/O fields
        key_size: RSA key size in bits
        install_dir: Install directory named in the bundle README

    Returns:
        CertificateBundle for the written archive

    Raises:
        InvalidInput: If the CN is empty or cannot be encoded
        NameCollision: If another CN already owns the bundle name
        EngineFailure: If key generation or signing fails
        StoreIOFailure: If packaging fails
    """
    common_name = normalize_common_name(common_name)
    sanitized_name = sanitize_name(common_name)

    try:
        san_names = [x509.DNSName(common_name)]
    except ValueError as e:
        raise InvalidInput(f"Client name '{common_name}' is not a valid DNS name: {e}")

    check_bundle_collision(ca, common_name, sanitized_name)

    identity = issue_identity(
        ca,
        common_name=common_name,
        san_names=san_names,
        purpose=CLIENT_PURPOSE,
        validity_days=validity_days,
        subject_fields=subject_fields,
        key_size=key_size,
    )

    bundle = write_bundle(ca.store, identity, sanitized_name, install_dir)
    logger.info("Issued client certificate '%s' -> %s", common_name, bundle.archive_path)
    return bundle
