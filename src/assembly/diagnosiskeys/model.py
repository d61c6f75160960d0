"""
Diagnosis keys - the records distributed by the assembly.

A diagnosis key is a temporary exposure key published by a positively tested
user, stamped with the hour at which it was submitted. The submission
timestamp is the only field the tree structure looks at; everything else is
payload carried into the export file.

Manifesto:
    - **Immutable:** Keys are frozen; a build never mutates its input
    - **Validated at construction:** Bad keys fail on load, not mid-build
    - **Hour granularity:** ``submission_timestamp`` counts hours since epoch

Examples:
    >>> key = DiagnosisKey(bytes(16), rolling_start_interval_number=2_680_000,
    ...                    rolling_period=144, transmission_risk_level=5,
    ...                    submission_timestamp=448_707)
    >>> key.submission_timestamp
    448707

Tags:
    diagnosis-key, record, validation, pydantic, assembly
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pydantic
from pydantic import BaseModel, ConfigDict, field_validator

from assembly.core.errors import ValidationError

KEY_DATA_LENGTH = 16
MAX_ROLLING_PERIOD = 144
MAX_TRANSMISSION_RISK_LEVEL = 8
# Day buckets need one more day of headroom before datetime.max
MAX_SUBMISSION_TIMESTAMP = (
    datetime(9999, 12, 31, tzinfo=UTC) - datetime(1970, 1, 1, tzinfo=UTC)
) // timedelta(hours=1)


@dataclass(frozen=True, slots=True)
class DiagnosisKey:
    """
    A single temporary exposure key.

    Attributes:
        key_data: 16 random key bytes
        rolling_start_interval_number: Start of validity in 10-minute intervals since epoch
        rolling_period: Validity length in 10-minute intervals (1..144)
        transmission_risk_level: Risk level assigned at submission (0..8)
        submission_timestamp: Submission time in whole hours since epoch (UTC)
    """

    key_data: bytes
    rolling_start_interval_number: int
    rolling_period: int
    transmission_risk_level: int
    submission_timestamp: int

    def __post_init__(self) -> None:
        if len(self.key_data) != KEY_DATA_LENGTH:
            raise ValidationError(
                f"Key data must be {KEY_DATA_LENGTH} bytes, got {len(self.key_data)}",
                field="key_data",
                constraint=f"len == {KEY_DATA_LENGTH}",
            )
        if self.rolling_start_interval_number < 0:
            raise ValidationError(
                "Rolling start interval number must not be negative",
                field="rolling_start_interval_number",
                value=self.rolling_start_interval_number,
                constraint=">= 0",
            )
        if not 1 <= self.rolling_period <= MAX_ROLLING_PERIOD:
            raise ValidationError(
                f"Rolling period must be between 1 and {MAX_ROLLING_PERIOD}",
                field="rolling_period",
                value=self.rolling_period,
                constraint=f"1..{MAX_ROLLING_PERIOD}",
            )
        if not 0 <= self.transmission_risk_level <= MAX_TRANSMISSION_RISK_LEVEL:
            raise ValidationError(
                f"Transmission risk level must be between 0 and {MAX_TRANSMISSION_RISK_LEVEL}",
                field="transmission_risk_level",
                value=self.transmission_risk_level,
                constraint=f"0..{MAX_TRANSMISSION_RISK_LEVEL}",
            )
        if not 0 <= self.submission_timestamp < MAX_SUBMISSION_TIMESTAMP:
            raise ValidationError(
                f"Submission timestamp must be between 0 and {MAX_SUBMISSION_TIMESTAMP - 1}",
                field="submission_timestamp",
                value=self.submission_timestamp,
                constraint=f"0..{MAX_SUBMISSION_TIMESTAMP - 1}",
            )


class DiagnosisKeyRecord(BaseModel):
    """Wire schema of one key in an input file (``key_data`` is base64)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    key_data: str
    rolling_start_interval_number: int
    rolling_period: int = MAX_ROLLING_PERIOD
    transmission_risk_level: int
    submission_timestamp: int

    @field_validator("key_data")
    @classmethod
    def _validate_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise ValueError(f"key_data is not valid base64: {e}") from e
        return value

    def to_domain(self) -> DiagnosisKey:
        return DiagnosisKey(
            key_data=base64.b64decode(self.key_data),
            rolling_start_interval_number=self.rolling_start_interval_number,
            rolling_period=self.rolling_period,
            transmission_risk_level=self.transmission_risk_level,
            submission_timestamp=self.submission_timestamp,
        )

    @classmethod
    def from_domain(cls, key: DiagnosisKey) -> DiagnosisKeyRecord:
        return cls(
            key_data=base64.b64encode(key.key_data).decode("ascii"),
            rolling_start_interval_number=key.rolling_start_interval_number,
            rolling_period=key.rolling_period,
            transmission_risk_level=key.transmission_risk_level,
            submission_timestamp=key.submission_timestamp,
        )


_RECORDS = pydantic.TypeAdapter(list[DiagnosisKeyRecord])


def parse_diagnosis_keys(raw: bytes | str) -> tuple[DiagnosisKey, ...]:
    """Parse a JSON array of key records."""
    try:
        records = _RECORDS.validate_json(raw)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Invalid diagnosis key input at {location or '<root>'}: {first.get('msg')}",
            field=location or None,
            cause=e,
        )
    return tuple(record.to_domain() for record in records)


def load_diagnosis_keys(path: Path) -> tuple[DiagnosisKey, ...]:
    """Read and validate a JSON key file."""
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise ValidationError(f"Cannot read diagnosis key file {path}", cause=e)
    return parse_diagnosis_keys(raw)


def dump_diagnosis_keys(keys: list[DiagnosisKey] | tuple[DiagnosisKey, ...]) -> str:
    """Serialize keys to the same JSON format ``load_diagnosis_keys`` reads."""
    return json.dumps(
        [DiagnosisKeyRecord.from_domain(key).model_dump() for key in keys],
        indent=2,
    )


__all__ = [
    "DiagnosisKey",
    "DiagnosisKeyRecord",
    "dump_diagnosis_keys",
    "load_diagnosis_keys",
    "parse_diagnosis_keys",
]
