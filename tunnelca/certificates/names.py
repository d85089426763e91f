# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Name handling for issued identities.

Covers bundle-name sanitization, subjectAltName parsing and subject
construction.
"""

import ipaddress
import re
from typing import List, Optional

from cryptography import x509
from cryptography.x509.oid import NameOID

from ..config import SubjectFields
from ..errors import InvalidInput


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.-]")

# RFC 5280 ub-common-name
MAX_COMMON_NAME_LENGTH = 64


def sanitize_name(common_name: str) -> str:
    """
    Map a common name to a filesystem-safe identifier.

    Every character outside ``[A-Za-z0-9.-]`` becomes ``_``.

    Args:
        common_name: Certificate common name

    Returns:
        Sanitized identifier
    """
    return _UNSAFE_CHARS.sub("_", common_name)


def normalize_common_name(common_name: Optional[str]) -> str:
    """Strip surrounding whitespace and reject empty or over-long names."""
    if common_name is None or not common_name.strip():
        raise InvalidInput(
            "Common name must not be empty",
            remediation="Pass a non-empty client name",
        )
    common_name = common_name.strip()
    if len(common_name) > MAX_COMMON_NAME_LENGTH:
        raise InvalidInput(
            f"Common name '{common_name}' exceeds {MAX_COMMON_NAME_LENGTH} characters"
        )
    return common_name


def parse_san_list(san_text: str) -> List[x509.GeneralName]:
    """
    Parse an OpenSSL-style subjectAltName string.

    Accepts comma-separated ``TYPE:value`` entries where TYPE is one of
    DNS, IP, email or URI, e.g. ``DNS:localhost,IP:127.0.0.1``.

    Args:
        san_text: SAN list text

    Returns:
        List of general names in input order

    Raises:
        InvalidInput: If an entry is malformed or the list is empty
    """
    names: List[x509.GeneralName] = []

    for raw_entry in san_text.split(","):
        entry = raw_entry.strip()
        if not entry:
            continue

        kind, sep, value = entry.partition(":")
        value = value.strip()
        if not sep or not value:
            raise InvalidInput(
                f"Malformed SAN entry '{entry}' (expected TYPE:value)",
                remediation="Use entries like DNS:example.com or IP:10.0.0.1",
            )

        kind = kind.strip().upper()
        if kind == "DNS":
            names.append(x509.DNSName(value))
        elif kind == "IP":
            try:
                names.append(x509.IPAddress(ipaddress.ip_address(value)))
            except ValueError:
                raise InvalidInput(f"Invalid IP address in SAN entry '{entry}'")
        elif kind == "EMAIL":
            names.append(x509.RFC822Name(value))
        elif kind == "URI":
            names.append(x509.UniformResourceIdentifier(value))
        else:
            raise InvalidInput(
                f"Unsupported SAN type '{kind}' in entry '{entry}'",
                remediation="Supported SAN types: DNS, IP, email, URI",
            )

    if not names:
        raise InvalidInput("SAN list is empty", remediation="Pass --sans with at least one entry")

    return names


def format_san_list(names: List[x509.GeneralName]) -> str:
    """Render general names back to ``TYPE:value`` text."""
    rendered = []
    for name in names:
        if isinstance(name, x509.DNSName):
            rendered.append(f"DNS:{name.value}")
        elif isinstance(name, x509.IPAddress):
            rendered.append(f"IP:{name.value}")
        elif isinstance(name, x509.RFC822Name):
            rendered.append(f"email:{name.value}")
        elif isinstance(name, x509.UniformResourceIdentifier):
            rendered.append(f"URI:{name.value}")
        else:
            rendered.append(str(name.value))
    return ",".join(rendered)


def build_subject(common_name: str, fields: Optional[SubjectFields] = None) -> x509.Name:
    """
    Build an X.509 subject.

    Args:
        common_name: CN attribute
        fields: Optional C/ST/L/O fields; empty values are left out

    Returns:
        Subject name
    """
    pairs = []
    if fields is not None:
        pairs = [
            (NameOID.COUNTRY_NAME, fields.country),
            (NameOID.STATE_OR_PROVINCE_NAME, fields.state),
            (NameOID.LOCALITY_NAME, fields.locality),
            (NameOID.ORGANIZATION_NAME, fields.organization),
        ]
    pairs.append((NameOID.COMMON_NAME, common_name))

    # x509.NameAttribute enforces length limits (CN <= 64, C == 2)
    try:
        return x509.Name([x509.NameAttribute(oid, value) for oid, value in pairs if value])
    except ValueError as e:
        raise InvalidInput(f"Invalid subject for '{common_name}': {e}")


def common_name_of(cert: x509.Certificate) -> Optional[str]:
    """Return the subject CN of a certificate, if present."""
    attributes = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return None
    return attributes[0].value
