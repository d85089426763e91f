# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
On-disk certificate store.

Layout:
    ca.key, ca.crt, ca.srl
    server.key, server.crt, server-combined.pem, server.p12
    clients/<sanitized-cn>.tar.gz
"""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from .errors import StoreIOFailure

logger = logging.getLogger(__name__)

BUNDLE_SUFFIX = ".tar.gz"


class CertificateStore:
    """File layout and I/O for one certificate store directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    # Paths

    @property
    def ca_key_path(self) -> Path:
        return self.root / "ca.key"

    @property
    def ca_cert_path(self) -> Path:
        return self.root / "ca.crt"

    @property
    def ca_serial_path(self) -> Path:
        return self.root / "ca.srl"

    @property
    def server_key_path(self) -> Path:
        return self.root / "server.key"

    @property
    def server_cert_path(self) -> Path:
        return self.root / "server.crt"

    @property
    def server_combined_path(self) -> Path:
        return self.root / "server-combined.pem"

    @property
    def server_p12_path(self) -> Path:
        return self.root / "server.p12"

    @property
    def clients_dir(self) -> Path:
        return self.root / "clients"

    def bundle_path(self, sanitized_name: str) -> Path:
        return self.clients_dir / f"{sanitized_name}{BUNDLE_SUFFIX}"

    # Queries

    def has_ca(self) -> bool:
        return self.ca_key_path.is_file() and self.ca_cert_path.is_file()

    def list_bundles(self) -> List[Path]:
        """Bundle archives in the store, sorted by name."""
        if not self.clients_dir.is_dir():
            return []
        return sorted(
            path for path in self.clients_dir.iterdir()
            if path.is_file() and path.name.endswith(BUNDLE_SUFFIX)
        )

    @staticmethod
    def bundle_name(path: Path) -> str:
        return path.name[: -len(BUNDLE_SUFFIX)]

    # I/O

    def read_bytes(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise StoreIOFailure(f"Cannot read {path.name}: {e.strerror or e}", path=path)

    def write_bytes(self, path: Path, data: bytes, mode: int = 0o644) -> Path:
        """
        Write a file atomically with the given permissions.

        The data lands in a sibling temporary file first and is renamed over
        the target, so readers never see a partial file.
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.chmod(tmp_name, mode)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StoreIOFailure(f"Cannot write {path.name}: {e.strerror or e}", path=path)

        logger.debug("Wrote %s (%d bytes, mode %o)", path, len(data), mode)
        return path

    @contextmanager
    def workspace(self, purpose: str) -> Iterator[Path]:
        """
        Scoped temporary directory, removed on every exit path.

        Args:
            purpose: Short label used in the directory name
        """
        try:
            workdir = Path(tempfile.mkdtemp(prefix=f"tunnelca-{purpose}-"))
        except OSError as e:
            raise StoreIOFailure(f"Cannot create temporary workspace: {e}")

        logger.debug("Created workspace %s", workdir)
        try:
            yield workdir
        finally:
            shutil.rmtree(workdir, ignore_errors=True)
            logger.debug("Removed workspace %s", workdir)

    def wipe(self) -> bool:
        """
        Delete the whole store directory.

        Returns:
            True if something was deleted
        """
        if not self.root.exists():
            return False
        try:
            shutil.rmtree(self.root)
        except OSError as e:
            raise StoreIOFailure(f"Cannot delete store: {e.strerror or e}", path=self.root)
        logger.info("Deleted certificate store %s", self.root)
        return True
