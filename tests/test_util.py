"""
Tests for utility modules.
"""

import json

import pytest
import yaml

from vm_readiness.util.files import ensure_dir, read_structured, write_json, write_text
from vm_readiness.util.hashing import sha256_file
from vm_readiness.util.numbers import round_half_up


class TestRoundHalfUp:
    """Tests for half-up rounding."""

    @pytest.mark.parametrize(
        "value,expected",
        [(92.5, 93), (250.5, 251), (2.5, 3), (0.5, 1), (2.49, 2), (7.0, 7), (0, 0)],
    )
    def test_rounding(self, value, expected):
        """Test that halves round up and other values round to nearest."""
        assert round_half_up(value) == expected

    def test_returns_int(self):
        """Test that the result is an int."""
        assert isinstance(round_half_up(3.6), int)


class TestHashing:
    """Tests for hashing utilities."""

    def test_sha256_file_basic(self, tmp_path):
        """Test hashing a file."""
        test_file = tmp_path / "test.txt"
        test_file.write_text("hello")

        result = sha256_file(test_file)

        # Known SHA256 hash of "hello"
        expected = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        assert result == expected

    def test_sha256_file_empty(self, tmp_path):
        """Test hashing empty file."""
        test_file = tmp_path / "empty.txt"
        test_file.write_text("")

        result = sha256_file(test_file)

        expected = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        assert result == expected

    def test_sha256_file_large(self, tmp_path):
        """Test hashing a file larger than one read chunk."""
        test_file = tmp_path / "large.bin"
        test_file.write_bytes(b"x" * 20000)

        assert sha256_file(test_file) == sha256_file(test_file)
        assert len(sha256_file(test_file)) == 64


class TestFiles:
    """Tests for file utilities."""

    def test_ensure_dir_creates_nested(self, tmp_path):
        """Test creating nested directories."""
        target = tmp_path / "a" / "b" / "c"

        result = ensure_dir(target)

        assert result == target
        assert target.is_dir()

    def test_ensure_dir_existing(self, tmp_path):
        """Test that an existing directory is left alone."""
        assert ensure_dir(tmp_path) == tmp_path

    def test_write_text_creates_parents(self, tmp_path):
        """Test that write_text creates parent directories."""
        target = tmp_path / "out" / "report.txt"

        write_text(target, "content")

        assert target.read_text() == "content"

    def test_write_json(self, tmp_path):
        """Test indented JSON output with trailing newline."""
        target = tmp_path / "report.json"

        write_json(target, {"b": 1, "a": [1, 2]})

        text = target.read_text()
        assert text.endswith("\n")
        assert json.loads(text) == {"b": 1, "a": [1, 2]}

    def test_read_structured_yaml(self, tmp_path):
        """Test reading YAML documents."""
        target = tmp_path / "inventory.yml"
        target.write_text("vms:\n  - name: web-01\n")

        assert read_structured(target) == {"vms": [{"name": "web-01"}]}

    def test_read_structured_json(self, tmp_path):
        """Test reading JSON documents."""
        target = tmp_path / "inventory.json"
        target.write_text('{"vms": []}')

        assert read_structured(target) == {"vms": []}

    def test_read_structured_errors(self, tmp_path):
        """Test that parse errors propagate by format."""
        bad_json = tmp_path / "bad.json"
        bad_json.write_text("{not json")
        bad_yaml = tmp_path / "bad.yaml"
        bad_yaml.write_text("vms: [unclosed\n")

        with pytest.raises(json.JSONDecodeError):
            read_structured(bad_json)
        with pytest.raises(yaml.YAMLError):
            read_structured(bad_yaml)
