"""
Temporary exposure key export file (``export.bin``).

Manifesto:
    The export file is what a client downloads for one time window. It is
    self-describing: a fixed 16-byte header identifies the format, followed by
    a canonical JSON document with the window, the region and the keys.
    Canonical means sorted keys, no whitespace and keys ordered by key data,
    so the same bucket always serializes to the same bytes.

Architecture:
    ::

        ┌──────────────────┬─────────────────────────────────────────┐
        │ "EK Export v1    "│ {"batch_num":1,"batch_size":1,          │
        │  (16 bytes)      │  "end_timestamp":…, "keys":[…],         │
        │                  │  "region":"DE", "signature_infos":[…],  │
        │                  │  "start_timestamp":…}                   │
        └──────────────────┴─────────────────────────────────────────┘

Examples:
    >>> export = ExportFile.from_diagnosis_keys(keys, "DE", 1609815600, 1609819200)
    >>> parse_export(export.get_bytes())["region"]
    'DE'

Tags:
    export, serialization, canonical-json, assembly
"""

from __future__ import annotations

import base64
import json
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any

from assembly.core.errors import ExportError
from assembly.diagnosiskeys.model import DiagnosisKey
from assembly.structure.writable import File

EXPORT_HEADER = b"EK Export v1    "
EXPORT_FILE_NAME = "export.bin"


@dataclass(frozen=True, slots=True)
class SignatureInfo:
    """Tells clients which key verifies the signature of this export."""

    app_bundle_id: str
    verification_key_version: str
    verification_key_id: str
    signature_algorithm: str

    @classmethod
    def from_settings(cls, settings, signature_algorithm: str) -> SignatureInfo:
        return cls(
            app_bundle_id=settings.app_bundle_id,
            verification_key_version=settings.verification_key_version,
            verification_key_id=settings.verification_key_id,
            signature_algorithm=signature_algorithm,
        )


def _key_to_dict(key: DiagnosisKey) -> dict[str, Any]:
    return {
        "key_data": base64.b64encode(key.key_data).decode("ascii"),
        "rolling_period": key.rolling_period,
        "rolling_start_interval_number": key.rolling_start_interval_number,
        "transmission_risk_level": key.transmission_risk_level,
    }


def serialize_export(
    keys: Iterable[DiagnosisKey],
    region: str,
    start_timestamp: int,
    end_timestamp: int,
    signature_info: SignatureInfo | None = None,
) -> bytes:
    """Serialize one bucket into export-file bytes."""
    if end_timestamp <= start_timestamp:
        raise ExportError(
            f"Empty export window [{start_timestamp}, {end_timestamp})"
        )
    try:
        document = {
            "batch_num": 1,
            "batch_size": 1,
            "start_timestamp": start_timestamp,
            "end_timestamp": end_timestamp,
            "region": region,
            "signature_infos": [asdict(signature_info)] if signature_info else [],
            "keys": sorted(
                (_key_to_dict(key) for key in keys),
                key=lambda k: (k["key_data"], k["rolling_start_interval_number"]),
            ),
        }
        body = json.dumps(document, sort_keys=True, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError, AttributeError) as e:
        raise ExportError(f"Failed to serialize export for region {region!r}", cause=e)
    return EXPORT_HEADER + body


def parse_export(data: bytes) -> dict[str, Any]:
    """Read export-file bytes back into a dictionary (``key_data`` stays base64)."""
    if not data.startswith(EXPORT_HEADER):
        raise ExportError("Not an export file: header mismatch")
    try:
        return json.loads(data[len(EXPORT_HEADER):].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ExportError("Export file body is not valid JSON", cause=e)


class ExportFile(File):
    """The ``export.bin`` entry of a bucket archive."""

    def __init__(
        self,
        keys: tuple[DiagnosisKey, ...],
        region: str,
        start_timestamp: int,
        end_timestamp: int,
        signature_info: SignatureInfo | None = None,
        name: str = EXPORT_FILE_NAME,
    ):
        self.keys = keys
        self.region = region
        self.start_timestamp = start_timestamp
        self.end_timestamp = end_timestamp
        super().__init__(
            name,
            data=serialize_export(keys, region, start_timestamp, end_timestamp, signature_info),
        )

    @classmethod
    def from_diagnosis_keys(
        cls,
        keys: Iterable[DiagnosisKey],
        region: str,
        start_timestamp: int,
        end_timestamp: int,
        signature_info: SignatureInfo | None = None,
        name: str = EXPORT_FILE_NAME,
    ) -> ExportFile:
        return cls(tuple(keys), region, start_timestamp, end_timestamp, signature_info, name)


__all__ = [
    "EXPORT_FILE_NAME",
    "EXPORT_HEADER",
    "ExportFile",
    "SignatureInfo",
    "parse_export",
    "serialize_export",
]
