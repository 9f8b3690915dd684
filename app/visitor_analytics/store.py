"""
Visit Event Store

Append-only storage for visit events. The JSON implementation keeps all
visits in one file plus a first-seen index per visitor key, so that the
new/return classification can look back over the full history without
reading events outside the requested window into the aggregation.

Files are replaced atomically and every read or write holds the store lock,
so a query always sees one consistent version of both files.
"""

import json
import logging
import os
import tempfile
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Protocol, Set, Tuple

from .errors import StoreUnavailableError
from .models import VisitEvent, parse_timestamp

logger = logging.getLogger(__name__)


class VisitStore(Protocol):
    """Interface the analytics service reads visit events through."""

    def fetch_events(self, window_start: date, window_end: date) -> List[VisitEvent]:
        """Return events whose calendar day falls in [window_start, window_end], in ingestion order."""

    def fetch_known_visitors(self, before: date) -> Set[str]:
        """Return visitor keys first seen on a day earlier than before."""

    def fetch_window(self, window_start: date, window_end: date) -> Tuple[List[VisitEvent], Set[str]]:
        """Return the window's events and the keys known before it, from one snapshot."""

    def append(self, event: VisitEvent) -> None:
        """Record a new visit event."""


class JsonVisitStore:
    """Visit store backed by JSON files in the user data directory."""

    def __init__(self, data_dir: Path, tz: tzinfo = timezone.utc):
        """Initialize the store.

        Args:
            data_dir: Directory holding the visit files
            tz: Reference time zone used to assign visits to calendar days
        """
        self.data_dir = Path(data_dir)
        self.tz = tz
        self.visits_file = self.data_dir / "visits.json"
        self.first_seen_file = self.data_dir / "visitor_first_seen.json"
        self._lock = Lock()

    def _day(self, timestamp: datetime) -> date:
        return timestamp.astimezone(self.tz).date()

    def fetch_events(self, window_start: date, window_end: date) -> List[VisitEvent]:
        with self._lock:
            visits = self._load_visits()
        return self._events_between(self._parse_visits(visits), window_start, window_end)

    def fetch_known_visitors(self, before: date) -> Set[str]:
        with self._lock:
            visits = self._load_visits()
            first_seen = self._load_first_seen()
        return self._known_before(self._parse_visits(visits), first_seen, before)

    def fetch_window(self, window_start: date, window_end: date) -> Tuple[List[VisitEvent], Set[str]]:
        with self._lock:
            visits = self._load_visits()
            first_seen = self._load_first_seen()
        events = self._parse_visits(visits)
        return (
            self._events_between(events, window_start, window_end),
            self._known_before(events, first_seen, window_start)
        )

    def append(self, event: VisitEvent) -> None:
        timestamp = parse_timestamp(event.timestamp.isoformat())
        with self._lock:
            visits = self._load_visits()
            visits.append(event.to_dict())
            self._write(self.visits_file, visits)

            if not event.visitor_key:
                return

            # The index is rebuilt from visits.json on read, so a failed
            # index write costs nothing but the shortcut.
            try:
                first_seen = self._load_first_seen()
                previous = first_seen.get(event.visitor_key)
                if previous is None or timestamp < parse_timestamp(previous):
                    first_seen[event.visitor_key] = timestamp.isoformat()
                    self._write(self.first_seen_file, first_seen)
            except (StoreUnavailableError, ValueError) as e:
                logger.warning(f"First-seen index not updated for {event.visitor_key!r}: {e}")

    def count(self) -> int:
        """Total number of stored visits."""
        with self._lock:
            return len(self._load_visits())

    # =====================
    # Private helper methods
    # =====================

    def _parse_visits(self, visits: List[Dict[str, Any]]) -> List[VisitEvent]:
        events = []
        for raw in visits:
            try:
                events.append(VisitEvent.from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed visit record {raw!r}: {e}")
        return events

    def _events_between(self, events: List[VisitEvent], window_start: date, window_end: date) -> List[VisitEvent]:
        return [e for e in events if window_start <= self._day(e.timestamp) <= window_end]

    def _known_before(self, events: List[VisitEvent], first_seen: Dict[str, str], before: date) -> Set[str]:
        """Keys first seen before a day, from the index and the visits themselves."""
        known = {e.visitor_key for e in events if e.visitor_key and self._day(e.timestamp) < before}
        for key, ts in first_seen.items():
            try:
                first_day = self._day(parse_timestamp(ts))
            except (TypeError, ValueError) as e:
                logger.warning(f"Ignoring bad first-seen entry for {key!r}: {e}")
                continue
            if first_day < before:
                known.add(key)
        return known

    def _read(self, path: Path, empty: Any) -> Any:
        """Read a JSON file; a missing file is an empty store."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            return empty
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading visit store file {path}: {e}")
            raise StoreUnavailableError(f"Cannot read {path.name}") from e

    def _write(self, path: Path, data: Any) -> None:
        """Write a JSON file through a temporary file and an atomic rename."""
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                'w', encoding='utf-8', dir=self.data_dir,
                prefix=f".{path.name}.", suffix=".tmp", delete=False
            ) as f:
                tmp_name = f.name
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except OSError as e:
            logger.error(f"Error writing visit store file {path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreUnavailableError(f"Cannot write {path.name}") from e

    def _load_visits(self) -> List[Dict[str, Any]]:
        visits = self._read(self.visits_file, [])
        if not isinstance(visits, list):
            raise StoreUnavailableError(f"Unexpected content in {self.visits_file.name}")
        return visits

    def _load_first_seen(self) -> Dict[str, str]:
        first_seen = self._read(self.first_seen_file, {})
        if not isinstance(first_seen, dict):
            raise StoreUnavailableError(f"Unexpected content in {self.first_seen_file.name}")
        return first_seen
