# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
tunnelca Certificate Utilities

X.509 certificate generation, parsing, and validation for the tunnel PKI.
"""

from .names import (
    sanitize_name,
    normalize_common_name,
    parse_san_list,
    format_san_list,
    build_subject,
    common_name_of,
)

from .builder import (
    SERVER_PURPOSE,
    CLIENT_PURPOSE,
    IdentityCertificateBuilder,
    build_ca_certificate,
    build_csr,
    generate_private_key,
)

from .parser import (
    CertificateParser,
    CertificateSummary,
)

from .validator import (
    CertificateValidator,
    ValidationResult,
)

__all__ = [
    # Names
    "sanitize_name",
    "normalize_common_name",
    "parse_san_list",
    "format_san_list",
    "build_subject",
    "common_name_of",
    # Builders
    "SERVER_PURPOSE",
    "CLIENT_PURPOSE",
    "IdentityCertificateBuilder",
    "build_ca_certificate",
    "build_csr",
    "generate_private_key",
    # Parsers
    "CertificateParser",
    "CertificateSummary",
    # Validators
    "CertificateValidator",
    "ValidationResult",
]
