"""Tests for the YAML application config loader."""

from pathlib import Path

import pytest

from feedstage.adapters.auth.crypto import hash_secret
from feedstage.config.loader import load_config


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "nope.yaml")
    assert config.publishers == ["RSS_20", "ATOM_10"]
    assert config.api_keys == []
    assert config.pagination.max_limit == 500


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "feedstage.yaml"
    path.write_text("")
    assert load_config(path).pagination.max_limit == 500


def test_full_file(tmp_path: Path) -> None:
    path = tmp_path / "feedstage.yaml"
    secret_hash = hash_secret("s3cret")
    path.write_text(
        "publishers: [RSS_20, JSON]\n"
        "api_keys:\n"
        "  - username: me\n"
        "    api_key: key-1\n"
        f"    api_secret_hash: \"{secret_hash}\"\n"
        "pagination:\n"
        "  max_limit: 50\n"
    )
    config = load_config(path)
    assert config.publishers == ["RSS_20", "JSON"]
    assert config.api_keys[0].username == "me"
    assert config.pagination.max_limit == 50


def test_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "feedstage.yaml"
    path.write_text("publishers: [RSS_20\n")
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_config(path)


def test_schema_violation(tmp_path: Path) -> None:
    path = tmp_path / "feedstage.yaml"
    path.write_text("pagination:\n  max_limit: 0\n")
    with pytest.raises(ValueError, match="validation failed"):
        load_config(path)


def test_bundled_sample_config_is_valid() -> None:
    sample = Path(__file__).resolve().parents[2] / "feedstage.yaml"
    config = load_config(sample)
    assert "RSS_20" in config.publishers


def test_malformed_secret_hash_fails_at_load(tmp_path: Path) -> None:
    path = tmp_path / "feedstage.yaml"
    path.write_text(
        "api_keys:\n"
        "  - username: me\n"
        "    api_key: key-1\n"
        "    api_secret_hash: not-a-hash\n"
    )
    with pytest.raises(ValueError, match="argon2"):
        load_config(path)
