"""Assembly settings.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    Everything the assembly needs to know about its surroundings (where the
    signing key lives, which countries are distributed, where the output
    goes) is declared here once, read from ``ASSEMBLY_*`` environment
    variables or a ``.env`` file, and validated at startup.

Features:
    - **AssemblySettings:** Output location, signing key, countries, parallelism
    - **env_prefix:** ``ASSEMBLY_`` environment variable namespacing
    - **.env file support:** Automatic loading via pydantic-settings
    - **Extra ignore:** Unknown env vars don't cause startup failures
    - **get_settings():** Cached process-wide instance

Examples:
    >>> from assembly.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.archive_name
    'index'

Tags:
    settings, configuration, pydantic, environment, assembly
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import pydantic
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from assembly.core.errors import InvalidConfigError

SignatureAlgorithm = Literal["ed25519", "ecdsa-p256"]


class AssemblySettings(BaseSettings):
    """Settings for a distribution assembly run.

    Fields
    ──────
    output_dir              : Directory the ``diagnosis-keys`` tree is written into
    private_key_path        : PEM private key used to sign every archive
    signature_algorithm     : ``ed25519`` (deterministic) or ``ecdsa-p256`` (randomized)
    supported_countries     : Country codes materialized under ``country/``
    max_workers             : Sibling dates built in parallel (1 = sequential)
    include_date_archives   : Also emit one signed archive per whole day
    log_level / json_logs   : Structlog configuration
    """

    model_config = SettingsConfigDict(
        env_prefix="ASSEMBLY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Output ───────────────────────────────────────────────────
    output_dir: Path = Field(
        default_factory=lambda: Path("out"),
        description="Directory the distribution tree is written into",
    )
    root_name: str = "diagnosis-keys"
    include_date_archives: bool = True

    # ── Signing ──────────────────────────────────────────────────
    private_key_path: Path | None = None
    signature_algorithm: SignatureAlgorithm = "ed25519"
    app_bundle_id: str = "app.coronawarn"
    verification_key_id: str = "262"
    verification_key_version: str = "v1"

    # ── Structure ────────────────────────────────────────────────
    supported_countries: list[str] = Field(default_factory=lambda: ["DE"])
    max_workers: int = Field(default=1, ge=1)

    # Fixed conventional names inside the tree
    archive_name: str = "index"
    export_file_name: str = "export.bin"
    signature_file_name: str = "export.sig"
    index_file_name: str = "index"

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("supported_countries")
    @classmethod
    def _validate_countries(cls, value: list[str]) -> list[str]:
        countries = [c.strip().upper() for c in value]
        for country in countries:
            if len(country) != 2 or not country.isalpha():
                raise ValueError(f"not an ISO 3166 alpha-2 country code: {country!r}")
        if len(set(countries)) != len(countries):
            raise ValueError("supported_countries contains duplicates")
        return countries

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value!r}")
        return level


def load_settings(**overrides: Any) -> AssemblySettings:
    """Build settings from the environment plus explicit overrides.

    Pydantic validation failures are raised as ``InvalidConfigError`` naming
    the first offending field.
    """
    try:
        return AssemblySettings(**overrides)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ())) or "settings"
        raise InvalidConfigError(
            key, first.get("input"), f"Invalid configuration for {key}: {first.get('msg')}"
        ) from exc


@lru_cache(maxsize=1)
def get_settings() -> AssemblySettings:
    """Return the cached process-wide settings."""
    return load_settings()


def reset_settings() -> None:
    """Drop the cached settings (tests, config reload)."""
    get_settings.cache_clear()


__all__ = [
    "AssemblySettings",
    "SignatureAlgorithm",
    "get_settings",
    "load_settings",
    "reset_settings",
]
