# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2026 The tunnelca Authors

"""
Unit tests for manifest parsing and batch client issuance.
"""

import pytest

from tunnelca.errors import InvalidInput, NameCollision, PrerequisiteMissing
from tunnelca.provisioning.batch import ClientManifest, issue_batch, parse_manifest, read_manifest


class TestManifest:

    def test_comments_and_blank_lines_skipped(self):
        text = "node1.example.com\n# disabled: node2\n\n   \n  node3.example.com  \n"

        assert parse_manifest(text) == ["node1.example.com", "node3.example.com"]

    def test_order_and_duplicates_kept(self):
        assert parse_manifest("b\na\nb\n") == ["b", "a", "b"]

    def test_no_trailing_newline(self):
        assert parse_manifest("node1\nnode2") == ["node1", "node2"]

    def test_read_missing(self, tmp_path):
        with pytest.raises(PrerequisiteMissing):
            read_manifest(tmp_path / "clients.list")

    def test_read(self, write_manifest):
        path = write_manifest("node1.example.com", "# comment")

        manifest = read_manifest(path)

        assert manifest.entries == ["node1.example.com"]
        assert len(manifest) == 1


class TestIssueBatch:
    """Batch issuance is best-effort per entry."""

    def test_continues_after_failures(self, tmp_path):
        manifest = ClientManifest(path=tmp_path / "clients.list", entries=["a", "bad", "c"])

        def issue_one(name):
            if name == "bad":
                raise InvalidInput("bad name")
            return name

        result = issue_batch(manifest, issue_one)

        assert result.issued == ["a", "c"]
        assert [failure.common_name for failure in result.failures] == ["bad"]
        assert result.attempted == 3
        assert not result.ok

    def test_progress_callback(self, tmp_path):
        manifest = ClientManifest(path=tmp_path / "clients.list", entries=["a", "b"])
        seen = []

        issue_batch(manifest, lambda name: name, on_result=lambda cn, bundle, error: seen.append((cn, error)))

        assert seen == [("a", None), ("b", None)]


class TestIssueAllClients:

    def test_requires_manifest(self, manager, ca):
        with pytest.raises(PrerequisiteMissing):
            manager.issue_all_clients()

    def test_requires_ca(self, manager, write_manifest):
        write_manifest("node1.example.com")

        with pytest.raises(PrerequisiteMissing):
            manager.issue_all_clients()

    def test_comment_and_blank_entries(self, manager, ca, write_manifest):
        write_manifest("node1.example.com", "# disabled: node2", "")

        result = manager.issue_all_clients()

        assert result.ok
        assert result.identifiers == ["node1.example.com"]
        assert [path.name for path in manager.store.list_bundles()] == ["node1.example.com.tar.gz"]

    def test_valid_and_invalid_entries(self, manager, ca, write_manifest):
        write_manifest(
            "node1.example.com",
            "nöde.example.com",
            "node3.example.com",
            "x" * 70,
            "node5.example.com",
        )

        result = manager.issue_all_clients()

        assert result.identifiers == ["node1.example.com", "node3.example.com", "node5.example.com"]
        assert [failure.common_name for failure in result.failures] == ["nöde.example.com", "x" * 70]
        assert all(isinstance(failure.error, InvalidInput) for failure in result.failures)
        assert len(manager.store.list_bundles()) == 3

    def test_collision_within_manifest(self, manager, ca, write_manifest):
        write_manifest("edge 1", "edge/1")

        result = manager.issue_all_clients()

        assert result.identifiers == ["edge_1"]
        assert len(result.failures) == 1
        assert isinstance(result.failures[0].error, NameCollision)

    def test_explicit_manifest_path(self, manager, ca, tmp_path):
        other = tmp_path / "other.list"
        other.write_text("other.example.com\n")

        result = manager.issue_all_clients(manifest_path=other)

        assert result.identifiers == ["other.example.com"]
