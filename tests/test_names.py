# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Unit tests for name handling.

Tests:
- Bundle name sanitization
- SAN list parsing
- Subject construction and CN validation
"""

import ipaddress

import pytest
from cryptography import x509
from cryptography.x509.oid import NameOID

from tunnelca.certificates.names import (
    build_subject,
    format_san_list,
    normalize_common_name,
    parse_san_list,
    sanitize_name,
)
from tunnelca.config import SubjectFields
from tunnelca.errors import InvalidInput


class TestSanitizeName:
    """Test filesystem-safe name mapping."""

    def test_safe_name_unchanged(self):
        assert sanitize_name("node1.example.com") == "node1.example.com"
        assert sanitize_name("edge-01.internal") == "edge-01.internal"

    def test_unsafe_characters_replaced(self):
        assert sanitize_name("my host/01") == "my_host_01"
        assert sanitize_name("a*b?c:d") == "a_b_c_d"

    def test_each_non_ascii_character_replaced(self):
        assert sanitize_name("nöde") == "n_de"

    def test_deterministic(self):
        name = "weird name #7 (prod)"
        assert sanitize_name(name) == sanitize_name(name)

    def test_distinct_names_can_collide(self):
        assert sanitize_name("node 1") == sanitize_name("node_1") == sanitize_name("node/1")


class TestNormalizeCommonName:
    """Test CN validation."""

    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
    def test_empty_rejected(self, value):
        with pytest.raises(InvalidInput):
            normalize_common_name(value)

    def test_whitespace_trimmed(self):
        assert normalize_common_name("  node1.example.com \n") == "node1.example.com"

    def test_too_long_rejected(self):
        with pytest.raises(InvalidInput):
            normalize_common_name("a" * 65)

    def test_max_length_accepted(self):
        assert normalize_common_name("a" * 64) == "a" * 64


class TestParseSanList:
    """Test subjectAltName parsing."""

    def test_dns_and_ip(self):
        names = parse_san_list("DNS:localhost,IP:127.0.0.1")

        assert names == [
            x509.DNSName("localhost"),
            x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
        ]

    def test_case_insensitive_types_and_spacing(self):
        names = parse_san_list(" dns:example.com , ip:::1 , email:ops@example.com, uri:https://example.com ")

        assert names == [
            x509.DNSName("example.com"),
            x509.IPAddress(ipaddress.ip_address("::1")),
            x509.RFC822Name("ops@example.com"),
            x509.UniformResourceIdentifier("https://example.com"),
        ]

    def test_trailing_comma_ignored(self):
        assert parse_san_list("DNS:a.example.com,") == [x509.DNSName("a.example.com")]

    @pytest.mark.parametrize("text", [
        "",
        ",",
        "localhost",
        "DNS:",
        "IP:999.1.1.1",
        "XYZ:value",
    ])
    def test_invalid(self, text):
        with pytest.raises(InvalidInput):
            parse_san_list(text)

    def test_format_round_trip(self):
        text = "DNS:localhost,IP:127.0.0.1"
        assert format_san_list(parse_san_list(text)) == text


class TestBuildSubject:
    """Test subject construction."""

    def test_subject_fields_and_cn(self):
        fields = SubjectFields(country="US", state="Oregon", locality="Eugene", organization="FRP")
        subject = build_subject("server.example.com", fields)

        assert subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value == "server.example.com"
        assert subject.get_attributes_for_oid(NameOID.COUNTRY_NAME)[0].value == "US"
        assert subject.get_attributes_for_oid(NameOID.ORGANIZATION_NAME)[0].value == "FRP"

    def test_empty_fields_left_out(self):
        fields = SubjectFields(country="", state="", locality="", organization="FRP")
        subject = build_subject("x.example.com", fields)

        assert subject.get_attributes_for_oid(NameOID.COUNTRY_NAME) == []
        assert len(subject) == 2

    def test_cn_only(self):
        subject = build_subject("ca.example.com")
        assert subject.rfc4514_string() == "CN=ca.example.com"

    def test_invalid_country_rejected(self):
        fields = SubjectFields(country="USA", state="", locality="", organization="")
        with pytest.raises(InvalidInput):
            build_subject("x.example.com", fields)
