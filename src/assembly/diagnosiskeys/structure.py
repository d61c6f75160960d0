"""
Diagnosis keys directory structure - the country/date/hour levels.

Manifesto:
    Each level is a configuration of ``IndexNode``: a child-index supplier
    over the key collection plus a name formatter. Only hours that actually
    contain keys become directories, and every key lands in exactly one hour
    bucket because the bucket is chosen by equality on the converted
    submission hour.

Architecture:
    ::

        diagnosis-keys/
          country/                     IndexNode[str]       supported countries
            index                      ["DE"]
            DE/
              date/                    IndexNode[date]      dates with keys
                index                  ["2021-01-05"]
                2021-01-05/
                  index, export.sig    signed day archive (optional)
                  hour/                IndexNode[datetime]  hours with keys
                    index              ["03", "09"]
                    03/
                      index            archive: export.bin
                      export.sig       detached signature over index

    Trail at an hour leaf: ``["DE", date(2021, 1, 5), datetime(…03:00)]``.
    The leaf pops twice to recover the country.

Guardrails:
    - The key collection is shared read-only by every branch
    - Builder state touched by worker threads is guarded by a lock

Tags:
    diagnosis-keys, structure, index, time-bucket, assembly
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

from assembly.core.settings import AssemblySettings
from assembly.crypto.provider import CryptoProvider
from assembly.diagnosiskeys.export import ExportFile, SignatureInfo
from assembly.diagnosiskeys.model import DiagnosisKey
from assembly.diagnosiskeys.signing import SigningDecorator
from assembly.diagnosiskeys.timeutil import (
    ONE_DAY,
    ONE_HOUR,
    epoch_seconds,
    get_dates,
    get_hours,
    hour_of,
    start_of_day,
)
from assembly.structure.archive import Archive
from assembly.structure.decorators import IndexingDecorator
from assembly.structure.index import CancellationToken, IndexNode
from assembly.structure.trail import EMPTY_TRAIL, AncestryTrail
from assembly.structure.writable import Directory, Writable


def format_hour(hour: datetime) -> str:
    return f"{hour.hour:02d}"


def format_date(day: date) -> str:
    return day.isoformat()


@dataclass(frozen=True)
class BucketInfo:
    """What was built for one leaf bucket."""

    region: str
    start_timestamp: int
    end_timestamp: int
    key_count: int


@dataclass
class BuildStats:
    hours: list[BucketInfo] = field(default_factory=list)
    days: list[BucketInfo] = field(default_factory=list)


class DiagnosisKeysStructure:
    """Builds the ``diagnosis-keys`` tree for one immutable key collection."""

    def __init__(
        self,
        keys: Iterable[DiagnosisKey],
        crypto: CryptoProvider,
        settings: AssemblySettings,
        cancellation: CancellationToken | None = None,
    ):
        self._keys = tuple(keys)
        self._crypto = crypto
        self._settings = settings
        self._cancellation = cancellation
        self._signature_info = SignatureInfo.from_settings(settings, crypto.algorithm_oid)
        self._lock = threading.Lock()
        self.stats = BuildStats()

    @property
    def keys(self) -> tuple[DiagnosisKey, ...]:
        return self._keys

    # ------------------------------------------------------------------
    # Levels
    # ------------------------------------------------------------------

    def build(self, trail: AncestryTrail = EMPTY_TRAIL) -> Directory:
        """Create and materialize the whole tree."""
        root = Directory(self._settings.root_name)
        root.add(self.country_node())
        root.prepare(trail)
        return root

    def country_node(self) -> Writable:
        node: IndexNode[str] = IndexNode(
            "country",
            lambda trail: list(self._settings.supported_countries),
            str,
            cancellation=self._cancellation,
        )
        node.add_to_all(lambda trail: self.date_node())
        return self._indexed(node)

    def date_node(self) -> Writable:
        node: IndexNode[date] = IndexNode(
            "date",
            lambda trail: get_dates(self._keys),
            format_date,
            max_workers=self._settings.max_workers,
            cancellation=self._cancellation,
        )
        node.add_to_all(lambda trail: self.hour_node())
        if self._settings.include_date_archives:
            node.add_to_all(self.date_archive)
        return self._indexed(node)

    def hour_node(self) -> Writable:
        node: IndexNode[datetime] = IndexNode(
            "hour",
            lambda trail: get_hours(trail.peek(date), self._keys),
            format_hour,
            cancellation=self._cancellation,
        )
        node.add_to_all(self.hour_archive)
        return self._indexed(node)

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def keys_for_hour(self, hour: datetime) -> tuple[DiagnosisKey, ...]:
        return tuple(key for key in self._keys if hour_of(key.submission_timestamp) == hour)

    def keys_for_date(self, day: date) -> tuple[DiagnosisKey, ...]:
        return tuple(key for key in self._keys if hour_of(key.submission_timestamp).date() == day)

    def hour_archive(self, trail: AncestryTrail) -> Writable:
        """Signed archive for the hour on top of ``trail``."""
        hour = trail.peek(datetime)
        # The date below the hour is redundant; the country sits under it.
        region = trail.pop().pop().peek(str)
        keys = self.keys_for_hour(hour)
        start = epoch_seconds(hour)
        end = epoch_seconds(hour + ONE_HOUR)
        archive = self._signed_archive(keys, region, start, end)
        self._record(self.stats.hours, BucketInfo(region, start, end, len(keys)))
        return archive

    def date_archive(self, trail: AncestryTrail) -> Writable:
        """Signed archive covering every key of the day on top of ``trail``."""
        day = trail.peek(date)
        region = trail.pop().peek(str)
        keys = self.keys_for_date(day)
        start = epoch_seconds(start_of_day(day))
        end = epoch_seconds(start_of_day(day) + ONE_DAY)
        archive = self._signed_archive(keys, region, start, end)
        self._record(self.stats.days, BucketInfo(region, start, end, len(keys)))
        return archive

    def _signed_archive(
        self, keys: tuple[DiagnosisKey, ...], region: str, start: int, end: int
    ) -> Writable:
        export = ExportFile.from_diagnosis_keys(
            keys,
            region,
            start,
            end,
            self._signature_info,
            name=self._settings.export_file_name,
        )
        archive = Archive(self._settings.archive_name)
        archive.add(export)
        return SigningDecorator(archive, self._crypto, self._settings.signature_file_name)

    def _indexed(self, node: IndexNode) -> Writable:
        return IndexingDecorator(node, self._settings.index_file_name)

    def _record(self, bucket_list: list[BucketInfo], info: BucketInfo) -> None:
        with self._lock:
            bucket_list.append(info)


__all__ = [
    "BucketInfo",
    "BuildStats",
    "DiagnosisKeysStructure",
    "format_date",
    "format_hour",
]
