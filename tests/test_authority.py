# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Unit tests for the certificate authority.

Tests:
- CA generation and persistence
- Loading and error handling
- Serial counter allocation
"""

import stat

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa

from tunnelca.certificates.builder import generate_private_key
from tunnelca.certificates.serialization import private_key_to_pem
from tunnelca.errors import EngineFailure, InvalidInput, OverwriteRefused, PrerequisiteMissing, StoreIOFailure
from tunnelca.provisioning.authority import CertificateAuthority
from tunnelca.store import CertificateStore


class TestCertificateAuthorityCreation:
    """Test CA generation."""

    def test_create_writes_files(self, tmp_path):
        store = CertificateStore(tmp_path / "certs")

        ca = CertificateAuthority.create(store, "ca.example.com", validity_days=5000)

        assert store.ca_key_path.is_file()
        assert store.ca_cert_path.is_file()
        assert store.ca_serial_path.is_file()
        assert stat.S_IMODE(store.ca_key_path.stat().st_mode) == 0o600
        assert isinstance(ca.private_key, rsa.RSAPrivateKey)
        assert ca.private_key.key_size == 2048

    def test_certificate_is_self_signed_ca(self, tmp_path):
        ca = CertificateAuthority.create(CertificateStore(tmp_path), "ca.example.com", validity_days=5000)
        cert = ca.certificate

        basic_constraints = cert.extensions.get_extension_for_oid(
            x509.oid.ExtensionOID.BASIC_CONSTRAINTS
        )
        assert basic_constraints.value.ca is True
        assert basic_constraints.critical is True
        assert cert.issuer == cert.subject
        assert ca.common_name == "ca.example.com"
        cert.verify_directly_issued_by(cert)

    def test_validity_period(self, tmp_path):
        ca = CertificateAuthority.create(CertificateStore(tmp_path), "ca.example.com", validity_days=100)
        cert = ca.certificate

        assert (cert.not_valid_after_utc - cert.not_valid_before_utc).days == 100

    def test_manager_refuses_overwrite(self, manager, ca):
        with pytest.raises(OverwriteRefused):
            manager.issue_ca()

        assert manager.load_ca().certificate == ca.certificate

    def test_manager_overwrite_replaces_ca(self, manager, ca):
        replacement = manager.issue_ca(overwrite=True)

        assert replacement.certificate != ca.certificate
        assert manager.load_ca().certificate == replacement.certificate

    def test_manager_uses_settings_defaults(self, manager, settings):
        ca = manager.issue_ca()

        assert ca.common_name == settings.ca_cn
        days = (ca.certificate.not_valid_after_utc - ca.certificate.not_valid_before_utc).days
        assert days == settings.ca_days


class TestCertificateAuthorityLoading:
    """Test loading an existing CA."""

    def test_load_round_trip(self, tmp_path):
        store = CertificateStore(tmp_path)
        created = CertificateAuthority.create(store, "ca.example.com", validity_days=5000)

        loaded = CertificateAuthority.load(store)

        assert loaded.certificate == created.certificate
        assert loaded.private_key.private_numbers() == created.private_key.private_numbers()

    def test_load_missing(self, tmp_path):
        with pytest.raises(PrerequisiteMissing) as exc_info:
            CertificateAuthority.load(CertificateStore(tmp_path))

        assert "issue ca" in exc_info.value.remediation

    def test_load_corrupt_certificate(self, tmp_path):
        store = CertificateStore(tmp_path)
        CertificateAuthority.create(store, "ca.example.com", validity_days=5000)
        store.ca_cert_path.write_bytes(b"not a certificate")

        with pytest.raises(EngineFailure):
            CertificateAuthority.load(store)

    def test_load_mismatched_key(self, tmp_path):
        store = CertificateStore(tmp_path)
        CertificateAuthority.create(store, "ca.example.com", validity_days=5000)
        store.ca_key_path.write_bytes(private_key_to_pem(generate_private_key()))

        with pytest.raises(EngineFailure):
            CertificateAuthority.load(store)


class TestSerialCounter:
    """Test serial number allocation."""

    def test_monotonic(self, tmp_path):
        ca = CertificateAuthority.create(CertificateStore(tmp_path), "ca.example.com", validity_days=5000)

        first = ca.next_serial()
        second = ca.next_serial()

        assert second == first + 1

    def test_persisted_across_loads(self, tmp_path):
        store = CertificateStore(tmp_path)
        ca = CertificateAuthority.create(store, "ca.example.com", validity_days=5000)
        last = ca.next_serial()

        reloaded = CertificateAuthority.load(store)

        assert reloaded.next_serial() == last + 1
        assert int(store.ca_serial_path.read_text().strip(), 16) == last + 1

    def test_signing_consumes_serials(self, manager, ca):
        before = int(manager.store.ca_serial_path.read_text(), 16)

        bundle = manager.issue_client("node1.example.com")

        assert bundle.serial_number == before + 1
        assert int(manager.store.ca_serial_path.read_text(), 16) == before + 1

    def test_missing_counter_recreated(self, tmp_path):
        store = CertificateStore(tmp_path)
        ca = CertificateAuthority.create(store, "ca.example.com", validity_days=5000)
        store.ca_serial_path.unlink()

        serial = ca.next_serial()

        assert serial > 0
        assert int(store.ca_serial_path.read_text(), 16) == serial

    def test_corrupt_counter(self, tmp_path):
        store = CertificateStore(tmp_path)
        ca = CertificateAuthority.create(store, "ca.example.com", validity_days=5000)
        store.ca_serial_path.write_text("not-hex\n")

        with pytest.raises(StoreIOFailure):
            ca.next_serial()


class TestCALifetimeOverride:
    """CA lifetime overrides must leave room for server certificates."""

    def test_override_applied(self, manager, settings):
        ca = manager.issue_ca(validity_days=settings.server_days + 10)

        days = (ca.certificate.not_valid_after_utc - ca.certificate.not_valid_before_utc).days
        assert days == settings.server_days + 10

    @pytest.mark.parametrize("days", [30, 3650])
    def test_not_longer_than_server_rejected(self, manager, days):
        with pytest.raises(InvalidInput) as exc_info:
            manager.issue_ca(validity_days=days)

        assert exc_info.value.remediation
        assert not manager.store.has_ca()

    @pytest.mark.parametrize("days", [0, -5])
    def test_non_positive_rejected(self, manager, days):
        with pytest.raises(InvalidInput):
            manager.issue_ca(validity_days=days)

        assert not manager.store.has_ca()
