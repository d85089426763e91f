# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""Pytest configuration and fixtures."""

import pytest

from tunnelca.config import Settings
from tunnelca.manager import HierarchyManager


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every test from an empty directory so no cert.properties leaks in."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a fresh store under tmp_path."""
    return Settings(
        _env_file=None,
        store_dir=tmp_path / "certs",
        manifest_path=tmp_path / "clients.list",
        ca_cn="ca.example.com",
        server_cn="server.example.com",
        server_sans="DNS:localhost,IP:127.0.0.1",
        client_cn="default-client.example.com",
    )


@pytest.fixture
def manager(settings) -> HierarchyManager:
    return HierarchyManager(settings)


@pytest.fixture
def ca(manager):
    """Manager store with a CA already issued."""
    return manager.issue_ca()


@pytest.fixture
def write_manifest(settings):
    """Write manifest lines to the configured clients list."""
    def _write(*lines: str):
        settings.manifest_path.write_text("\n".join(lines) + "\n")
        return settings.manifest_path
    return _write
