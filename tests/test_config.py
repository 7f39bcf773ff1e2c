"""Tests for configuration loading."""

import pytest
from pathlib import Path

from synchroversion.config import load_config, parse_umask
from synchroversion.errors import ConfigurationError

ENV_KEYS = [
    "SYNCHROVERSION_ROOT",
    "SYNCHROVERSION_RETAIN_VERSIONS",
    "SYNCHROVERSION_RETAIN_DIFFS",
    "SYNCHROVERSION_UMASK",
    "SYNCHROVERSION_VERBOSE",
    "SYNCHROVERSION_DIFF",
    "SYNCHROVERSION_INTERVAL",
    "SYNCHROVERSION_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self):
        config = load_config()
        assert config.retention.versions == 3
        assert config.retention.diffs is None
        assert config.storage.umask == 0o022
        assert config.storage.locking is True
        assert config.diff.engine == "diff"
        assert config.diff.timeout is None
        assert config.watch.interval == 300
        assert config.root.name == "assets"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SYNCHROVERSION_RETAIN_VERSIONS", "7")
        monkeypatch.setenv("SYNCHROVERSION_DIFF", "difflib")
        monkeypatch.setenv("SYNCHROVERSION_UMASK", "077")
        monkeypatch.setenv("SYNCHROVERSION_VERBOSE", "true")

        config = load_config()
        assert config.retention.versions == 7
        assert config.diff.engine == "difflib"
        assert config.storage.umask == 0o077
        assert config.storage.verbose is True

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "synchroversion.toml"
        toml_path.write_text("""
root = "/srv/versions"
log_level = "DEBUG"

[retention]
versions = 5
diffs = 20

[storage]
umask = "027"
locking = false

[diff]
engine = "difflib"
timeout = 30

[watch]
interval = 60
""")
        config = load_config(toml_path)
        assert config.root == Path("/srv/versions")
        assert config.log_level == "DEBUG"
        assert config.retention.versions == 5
        assert config.retention.diffs == 20
        assert config.storage.umask == 0o027
        assert config.storage.locking is False
        assert config.diff.engine == "difflib"
        assert config.diff.timeout == 30.0
        assert config.watch.interval == 60

    def test_zero_diffs_means_unbounded(self, tmp_path: Path):
        toml_path = tmp_path / "synchroversion.toml"
        toml_path.write_text("[retention]\ndiffs = 0\n")
        assert load_config(toml_path).retention.diffs is None

    def test_found_in_cwd(self, tmp_path: Path):
        (tmp_path / "synchroversion.toml").write_text("[retention]\nversions = 9\n")
        assert load_config().retention.versions == 9

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("SYNCHROVERSION_INTERVAL", "15")

        toml_path = tmp_path / "synchroversion.toml"
        toml_path.write_text("""
[watch]
interval = 600
""")
        config = load_config(toml_path)
        assert config.watch.interval == 15  # env wins


class TestParseUmask:
    @pytest.mark.parametrize("value,expected", [("022", 0o022), ("0o077", 0o077), (18, 0o022), ("0", 0)])
    def test_valid(self, value, expected):
        assert parse_umask(value) == expected

    @pytest.mark.parametrize("value", ["abc", "999", 0o1000, -1])
    def test_invalid(self, value):
        with pytest.raises(ConfigurationError):
            parse_umask(value)


class TestInvalidConfig:
    @pytest.mark.parametrize(
        "key,value",
        [
            ("SYNCHROVERSION_RETAIN_VERSIONS", "three"),
            ("SYNCHROVERSION_RETAIN_DIFFS", "many"),
            ("SYNCHROVERSION_INTERVAL", "5m"),
            ("SYNCHROVERSION_UMASK", "999"),
        ],
    )
    def test_bad_env_value(self, monkeypatch, key, value):
        monkeypatch.setenv(key, value)
        with pytest.raises(ConfigurationError):
            load_config()

    @pytest.mark.parametrize("body", ["[retention]\ndiffs = -5\n", "[diff]\ntimeout = -1\n"])
    def test_negative_limit_rejected(self, tmp_path: Path, body):
        toml_path = tmp_path / "synchroversion.toml"
        toml_path.write_text(body)
        with pytest.raises(ConfigurationError, match="must not be negative"):
            load_config(toml_path)

    def test_malformed_toml(self, tmp_path: Path):
        toml_path = tmp_path / "synchroversion.toml"
        toml_path.write_text("[retention\nversions = 3\n")
        with pytest.raises(ConfigurationError, match="Invalid"):
            load_config(toml_path)
