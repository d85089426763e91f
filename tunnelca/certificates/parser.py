# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Certificate inspection utilities for verification reports.
"""

import datetime
from dataclasses import dataclass, field
from typing import List, Optional

from cryptography import x509
from cryptography.x509.oid import ExtensionOID

from .names import common_name_of, format_san_list


@dataclass
class CertificateSummary:
    """Human-readable facts about one certificate."""

    subject: str
    issuer: str
    serial_number: int
    not_before: datetime.datetime
    not_after: datetime.datetime
    common_name: Optional[str] = None
    subject_alt_names: List[str] = field(default_factory=list)
    is_ca: bool = False

    def describe(self) -> List[str]:
        """Lines in the order the verify report prints them."""
        lines = [
            f"Subject: {self.subject}",
            f"Issuer: {self.issuer}",
            f"Not Before: {self.not_before:%Y-%m-%d %H:%M:%S} UTC",
            f"Not After:  {self.not_after:%Y-%m-%d %H:%M:%S} UTC",
        ]
        if self.subject_alt_names:
            lines.append(f"SANs: {', '.join(self.subject_alt_names)}")
        return lines


class CertificateParser:
    """Extract summary information from X.509 certificates."""

    @staticmethod
    def subject_alt_names(cert: x509.Certificate) -> List[str]:
        try:
            ext = cert.extensions.get_extension_for_oid(ExtensionOID.SUBJECT_ALTERNATIVE_NAME)
        except x509.ExtensionNotFound:
            return []
        return [format_san_list([name]) for name in ext.value]

    @staticmethod
    def is_ca(cert: x509.Certificate) -> bool:
        try:
            ext = cert.extensions.get_extension_for_oid(ExtensionOID.BASIC_CONSTRAINTS)
        except x509.ExtensionNotFound:
            return False
        return ext.value.ca

    @classmethod
    def summarize(cls, cert: x509.Certificate) -> CertificateSummary:
        return CertificateSummary(
            subject=cert.subject.rfc4514_string(),
            issuer=cert.issuer.rfc4514_string(),
            serial_number=cert.serial_number,
            not_before=cert.not_valid_before_utc,
            not_after=cert.not_valid_after_utc,
            common_name=common_name_of(cert),
            subject_alt_names=cls.subject_alt_names(cert),
            is_ca=cls.is_ca(cert),
        )
