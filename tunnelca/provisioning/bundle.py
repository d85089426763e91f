# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Client bundle packaging.

A bundle is one gzip'd tarball per client holding everything needed to
install the client identity:
- <name>.key, <name>.crt, <name>-combined.pem, <name>.p12
- ca.crt
- README.txt
"""

import datetime
import io
import logging
import tarfile
from dataclasses import dataclass
from pathlib import Path
from typing import List

from cryptography import x509

from ..certificates.serialization import load_certificate
from ..errors import StoreIOFailure
from ..store import CertificateStore
from .identity import IssuedIdentity

logger = logging.getLogger(__name__)

CA_MEMBER = "ca.crt"
README_MEMBER = "README.txt"


@dataclass
class CertificateBundle:
    """A packaged client identity."""

    common_name: str
    sanitized_name: str
    archive_path: Path
    serial_number: int
    not_after: datetime.datetime

    @property
    def members(self) -> List[str]:
        return bundle_member_names(self.sanitized_name)


def bundle_member_names(sanitized_name: str) -> List[str]:
    return [
        f"{sanitized_name}.key",
        f"{sanitized_name}.crt",
        f"{sanitized_name}-combined.pem",
        f"{sanitized_name}.p12",
        CA_MEMBER,
        README_MEMBER,
    ]


def render_readme(identity: IssuedIdentity, sanitized_name: str, install_dir: str) -> str:
    """
    Install instructions shipped inside the bundle.

    Args:
        identity: Issued client identity
        sanitized_name: Bundle file prefix
        install_dir: Directory the client files are expected to live in

    Returns:
        README text
    """
    cert = identity.certificate
    install_dir = install_dir.rstrip("/") or "/"

    return f"""FRP client certificate bundle
=============================

Client:      {identity.common_name}
Serial:      {cert.serial_number:X}
Valid from:  {cert.not_valid_before_utc:%Y-%m-%d %H:%M:%S} UTC
Valid until: {cert.not_valid_after_utc:%Y-%m-%d %H:%M:%S} UTC
Issuer:      {cert.issuer.rfc4514_string()}

Files
-----
  {sanitized_name}.key           private key (keep secret, mode 0600)
  {sanitized_name}.crt           client certificate
  {sanitized_name}-combined.pem  certificate followed by private key
  {sanitized_name}.p12           PKCS12 archive (no password) with key, certificate and CA
  ca.crt                         CA certificate used to verify the server

Installation
------------
  mkdir -p {install_dir}
  tar -xzf {sanitized_name}.tar.gz -C {install_dir}
  chmod 600 {install_dir}/{sanitized_name}.key {install_dir}/{sanitized_name}-combined.pem {install_dir}/{sanitized_name}.p12

Add to frpc.toml:

  transport.tls.enable = true
  transport.tls.certFile = "{install_dir}/{sanitized_name}.crt"
  transport.tls.keyFile = "{install_dir}/{sanitized_name}.key"
  transport.tls.trustedCaFile = "{install_dir}/ca.crt"

Then restart the client:

  systemctl restart frpc

Verify the certificate against the CA:

  openssl verify -CAfile {install_dir}/ca.crt {install_dir}/{sanitized_name}.crt
"""


def write_bundle(
    store: CertificateStore,
    identity: IssuedIdentity,
    sanitized_name: str,
    install_dir: str,
) -> CertificateBundle:
    """
    Assemble the client files in a temporary workspace and archive them.

    The workspace is removed whether or not packaging succeeds; the archive
    replaces any previous bundle of the same name only once it is complete.

    Returns:
        CertificateBundle describing the written archive
    """
    archive_path = store.bundle_path(sanitized_name)
    contents = {
        f"{sanitized_name}.key": (identity.key_pem, 0o600),
        f"{sanitized_name}.crt": (identity.cert_pem, 0o644),
        f"{sanitized_name}-combined.pem": (identity.combined_pem, 0o600),
        f"{sanitized_name}.p12": (identity.to_pkcs12(), 0o600),
        CA_MEMBER: (identity.ca_pem, 0o644),
        README_MEMBER: (render_readme(identity, sanitized_name, install_dir).encode("utf-8"), 0o644),
    }

    with store.workspace("bundle") as workdir:
        try:
            for name, (data, mode) in contents.items():
                path = workdir / name
                path.write_bytes(data)
                path.chmod(mode)

            buffer = io.BytesIO()
            with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
                for name in contents:
                    tar.add(workdir / name, arcname=name)
        except (OSError, tarfile.TarError) as e:
            raise StoreIOFailure(f"Failed to package bundle for '{identity.common_name}': {e}")

        store.write_bytes(archive_path, buffer.getvalue(), mode=0o600)

    logger.info("Packaged bundle %s for '%s'", archive_path.name, identity.common_name)

    return CertificateBundle(
        common_name=identity.common_name,
        sanitized_name=sanitized_name,
        archive_path=archive_path,
        serial_number=identity.certificate.serial_number,
        not_after=identity.certificate.not_valid_after_utc,
    )


def extract_bundle(archive_path: Path, workdir: Path) -> List[Path]:
    """
    Extract the regular files of a bundle into ``workdir``.

    Member paths are flattened to their base names; links, devices and
    directories are skipped.

    Raises:
        StoreIOFailure: If the archive cannot be read
    """
    extracted = []
    try:
        with tarfile.open(archive_path, mode="r:gz") as tar:
            for member in tar.getmembers():
                if not member.isfile():
                    continue
                name = Path(member.name).name
                if not name or name in (".", ".."):
                    continue
                source = tar.extractfile(member)
                if source is None:
                    continue
                target = workdir / name
                with source:
                    target.write_bytes(source.read())
                extracted.append(target)
    except (OSError, EOFError, tarfile.TarError) as e:
        raise StoreIOFailure(f"Cannot read bundle {archive_path.name}: {e}", path=archive_path)

    return extracted


def find_identity_certificate(files: List[Path]) -> Path:
    """
    Locate the client certificate among extracted bundle files.

    Raises:
        StoreIOFailure: If the bundle holds no certificate besides ca.crt
    """
    candidates = sorted(path for path in files if path.suffix == ".crt" and path.name != CA_MEMBER)
    if not candidates:
        raise StoreIOFailure("Bundle contains no client certificate")
    return candidates[0]


def read_bundle_certificate(store: CertificateStore, archive_path: Path) -> x509.Certificate:
    """
    Load the client certificate from an existing bundle.

    Raises:
        StoreIOFailure: If the bundle is unreadable or holds no valid certificate
    """
    with store.workspace("inspect") as workdir:
        files = extract_bundle(archive_path, workdir)
        cert_path = find_identity_certificate(files)
        try:
            return load_certificate(cert_path.read_bytes())
        except ValueError as e:
            raise StoreIOFailure(f"Bundle certificate is unreadable: {e}", path=archive_path)
