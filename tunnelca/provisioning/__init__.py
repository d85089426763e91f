# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Provisioning module for tunnelca.

Handles CA creation, server and client certificate issuance, and client
bundle packaging.
"""

from .authority import CertificateAuthority

from .identity import (
    IssuedIdentity,
    issue_identity,
)

from .server import (
    ServerIdentity,
    issue_server,
)

from .bundle import (
    CertificateBundle,
    extract_bundle,
    find_identity_certificate,
    read_bundle_certificate,
    render_readme,
    write_bundle,
)

from .client import (
    check_bundle_collision,
    issue_client,
)

from .batch import (
    BatchFailure,
    BatchResult,
    ClientManifest,
    issue_batch,
    parse_manifest,
    read_manifest,
)

__all__ = [
    "CertificateAuthority",
    "IssuedIdentity",
    "issue_identity",
    "ServerIdentity",
    "issue_server",
    "CertificateBundle",
    "extract_bundle",
    "find_identity_certificate",
    "read_bundle_certificate",
    "render_readme",
    "write_bundle",
    "check_bundle_collision",
    "issue_client",
    "BatchFailure",
    "BatchResult",
    "ClientManifest",
    "issue_batch",
    "parse_manifest",
    "read_manifest",
]
