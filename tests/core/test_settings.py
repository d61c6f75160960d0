"""Tests for assembly.core.settings module.

Covers:
- Defaults, including the fixed conventional file names
- Environment variable override with the ASSEMBLY_ prefix
- Validation failures surfacing as InvalidConfigError
- Cached get_settings()
"""

from pathlib import Path

import pytest

from assembly.core.errors import InvalidConfigError
from assembly.core.settings import AssemblySettings, get_settings, load_settings, reset_settings


class TestDefaults:
    def test_conventional_names(self):
        s = AssemblySettings()
        assert s.archive_name == "index"
        assert s.export_file_name == "export.bin"
        assert s.signature_file_name == "export.sig"
        assert s.index_file_name == "index"
        assert s.root_name == "diagnosis-keys"

    def test_signing_defaults(self):
        s = AssemblySettings()
        assert s.signature_algorithm == "ed25519"
        assert s.private_key_path is None

    def test_structure_defaults(self):
        s = AssemblySettings()
        assert s.supported_countries == ["DE"]
        assert s.max_workers == 1
        assert s.include_date_archives is True
        assert s.output_dir == Path("out")


class TestEnvOverride:
    def test_output_dir_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ASSEMBLY_OUTPUT_DIR", str(tmp_path / "dist"))
        assert load_settings().output_dir == tmp_path / "dist"

    def test_countries_from_env_json(self, monkeypatch):
        monkeypatch.setenv("ASSEMBLY_SUPPORTED_COUNTRIES", '["de", "fr"]')
        assert load_settings().supported_countries == ["DE", "FR"]

    def test_algorithm_from_env(self, monkeypatch):
        monkeypatch.setenv("ASSEMBLY_SIGNATURE_ALGORITHM", "ecdsa-p256")
        assert load_settings().signature_algorithm == "ecdsa-p256"

    def test_unprefixed_vars_ignored(self, monkeypatch):
        monkeypatch.setenv("MAX_WORKERS", "8")
        assert load_settings().max_workers == 1

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("ASSEMBLY_MAX_WORKERS=3\n")
        assert load_settings().max_workers == 3

    def test_explicit_override_wins(self, monkeypatch):
        monkeypatch.setenv("ASSEMBLY_MAX_WORKERS", "2")
        assert load_settings(max_workers=5).max_workers == 5


class TestValidation:
    def test_zero_workers_rejected(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            load_settings(max_workers=0)
        assert exc_info.value.key == "max_workers"

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(InvalidConfigError):
            load_settings(signature_algorithm="rsa")

    def test_bad_country_rejected(self):
        with pytest.raises(InvalidConfigError, match="supported_countries"):
            load_settings(supported_countries=["GER"])

    def test_duplicate_country_rejected(self):
        with pytest.raises(InvalidConfigError):
            load_settings(supported_countries=["DE", "de"])

    def test_log_level_normalized(self):
        assert load_settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(InvalidConfigError):
            load_settings(log_level="chatty")


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_reset(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("ASSEMBLY_MAX_WORKERS", "4")
        reset_settings()
        second = get_settings()
        assert second is not first
        assert second.max_workers == 4
