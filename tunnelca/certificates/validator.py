# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Chain validation of issued certificates against the store CA.
"""

import datetime
from dataclasses import dataclass
from typing import Optional

from cryptography import x509
from cryptography.exceptions import InvalidSignature


@dataclass
class ValidationResult:
    """Result of certificate validation."""

    valid: bool
    error_message: Optional[str] = None
    certificate: Optional[x509.Certificate] = None


class CertificateValidator:
    """Validate certificates issued directly by one trusted CA."""

    def __init__(self, ca_cert: x509.Certificate):
        """
        Initialize certificate validator.

        Args:
            ca_cert: Trusted CA certificate
        """
        self.ca_cert = ca_cert

    def validate(
        self,
        cert: x509.Certificate,
        check_expiration: bool = True,
        now: Optional[datetime.datetime] = None,
    ) -> ValidationResult:
        """
        Validate certificate chain against the CA.

        Args:
            cert: Certificate to validate
            check_expiration: Check validity windows of cert and CA
            now: Reference time (default: current UTC time)

        Returns:
            ValidationResult; never raises for an invalid certificate
        """
        now = now or datetime.datetime.now(datetime.timezone.utc)

        if check_expiration:
            for label, subject in (("CA certificate", self.ca_cert), ("Certificate", cert)):
                if subject.not_valid_before_utc > now:
                    return ValidationResult(
                        valid=False,
                        error_message=f"{label} not yet valid (valid from {subject.not_valid_before_utc})",
                    )
                if subject.not_valid_after_utc < now:
                    return ValidationResult(
                        valid=False,
                        error_message=f"{label} expired (expired {subject.not_valid_after_utc})",
                    )

        if cert.issuer != self.ca_cert.subject:
            return ValidationResult(
                valid=False,
                error_message=f"Issuer '{cert.issuer.rfc4514_string()}' does not match CA subject",
            )

        try:
            cert.verify_directly_issued_by(self.ca_cert)
        except InvalidSignature:
            return ValidationResult(
                valid=False,
                error_message="Certificate signature verification failed",
            )
        except (ValueError, TypeError) as e:
            return ValidationResult(
                valid=False,
                error_message=f"Certificate validation failed: {e}",
            )

        return ValidationResult(valid=True, certificate=cert)
