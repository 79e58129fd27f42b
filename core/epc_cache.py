"""
EPC reconciliation cache for the Linen RFID Dashboard.

This module resolves scanned EPCs against the inventory API once per
session. Each EPC moves through
unseen -> processing -> cached-valid | cached-nonexistent and is never
looked up again until the cache is cleared.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from .models import LinenRecord

logger = logging.getLogger(__name__)

MIN_EPC_LENGTH = 8
_HEX_RE = re.compile(r"^[0-9A-Fa-f]+$")


def is_valid_epc(epc: str) -> bool:
    """An EPC must be hexadecimal and at least 8 characters long."""
    return bool(epc) and len(epc) >= MIN_EPC_LENGTH and bool(_HEX_RE.match(epc))


class EPCState(Enum):
    UNSEEN = "unseen"
    PROCESSING = "processing"
    VALID = "valid"
    NON_EXISTENT = "non_existent"


class Outcome(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    INVALID_FORMAT = "invalid_format"
    SKIPPED = "skipped"


@dataclass
class LookupResult:
    """Result of resolving one EPC."""
    epc: str
    outcome: Outcome
    records: List[LinenRecord] = field(default_factory=list)
    from_cache: bool = False

    @property
    def found(self) -> bool:
        return self.outcome is Outcome.FOUND

    @property
    def record(self) -> Optional[LinenRecord]:
        return self.records[0] if self.records else None


@dataclass
class ScopeCheck:
    """Whether a linen record belongs to the selected customer/room."""
    is_valid: bool
    error_message: Optional[str] = None


def check_scope(
    record: LinenRecord,
    customer_id: Optional[str] = None,
    room_id: Optional[str] = None
) -> ScopeCheck:
    """
    Classify a record against the active customer and room filter.

    No customer selected means every record is in scope. The room is
    only checked once the customer matches.
    """
    if not customer_id:
        return ScopeCheck(True)
    if record.customer_id != customer_id:
        return ScopeCheck(
            False, f"Tag belongs to {record.customer_name} ({record.customer_id})"
        )
    if room_id and record.room_id != room_id:
        return ScopeCheck(
            False, f"Tag assigned to room {record.room_name} ({record.room_id})"
        )
    return ScopeCheck(True)


class EPCCache:
    """
    Session cache of EPC lookups.

    ``lookup`` is called with an EPC and returns the linen records for
    it; any exception it raises is treated as "not found". Membership
    checks and state changes happen under one lock, the lookup itself
    runs outside it so different EPCs resolve in parallel.
    """

    def __init__(self, lookup: Callable[[str], List[LinenRecord]]):
        self._lookup = lookup
        self._lock = threading.Lock()
        self._settled = threading.Condition(self._lock)
        self._cache: Dict[str, List[LinenRecord]] = {}
        self._processing: Set[str] = set()
        self._generation = 0
        self.lookup_count = 0

    @classmethod
    def for_api(cls, api) -> "EPCCache":
        return cls(api.get_linen_by_epc)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def state(self, epc: str) -> EPCState:
        with self._lock:
            return self._state_locked(epc)

    def _state_locked(self, epc: str) -> EPCState:
        if epc in self._processing:
            return EPCState.PROCESSING
        if epc in self._cache:
            return EPCState.VALID if self._cache[epc] else EPCState.NON_EXISTENT
        return EPCState.UNSEEN

    def get(self, epc: str) -> Optional[List[LinenRecord]]:
        """Cached records for an EPC, or None when it was never resolved."""
        with self._lock:
            records = self._cache.get(epc)
            return list(records) if records is not None else None

    def get_record(self, epc: str) -> Optional[LinenRecord]:
        records = self.get(epc)
        return records[0] if records else None

    @property
    def valid_epcs(self) -> Set[str]:
        with self._lock:
            return {epc for epc, records in self._cache.items() if records}

    @property
    def nonexistent_epcs(self) -> Set[str]:
        with self._lock:
            return {epc for epc, records in self._cache.items() if not records}

    @property
    def processing(self) -> Set[str]:
        with self._lock:
            return set(self._processing)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, epc: str) -> bool:
        with self._lock:
            return epc in self._cache

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, epc: str, wait: bool = False) -> LookupResult:
        """
        Resolve an EPC, calling the remote lookup at most once per session.

        An EPC already being looked up is SKIPPED, or with ``wait`` the
        call blocks until that lookup settles and returns its result.
        """
        epc = (epc or "").strip()
        if not is_valid_epc(epc):
            logger.warning("Invalid EPC format: %r", epc)
            return LookupResult(epc, Outcome.INVALID_FORMAT)

        with self._lock:
            while epc in self._processing:
                if not wait:
                    return LookupResult(epc, Outcome.SKIPPED)
                self._settled.wait()
            if epc in self._cache:
                records = list(self._cache[epc])
                outcome = Outcome.FOUND if records else Outcome.NOT_FOUND
                return LookupResult(epc, outcome, records, from_cache=True)
            self._processing.add(epc)
            self.lookup_count += 1
            generation = self._generation

        records: List[LinenRecord] = []
        try:
            logger.debug("Looking up EPC %s", epc)
            records = list(self._lookup(epc) or [])
        except Exception as e:
            logger.error("Error fetching linen data for EPC %s: %s", epc, e)
            records = []
        finally:
            with self._lock:
                # A clear() during the lookup discards its result
                if generation == self._generation:
                    self._processing.discard(epc)
                    self._cache[epc] = records
                self._settled.notify_all()

        if records:
            logger.info("EPC %s: %s", epc, records[0].linen_name or "found")
            return LookupResult(epc, Outcome.FOUND, list(records))

        logger.info("EPC %s not registered", epc)
        return LookupResult(epc, Outcome.NOT_FOUND)

    def clear(self):
        """Forget every cached and in-flight EPC."""
        with self._lock:
            self._cache.clear()
            self._processing.clear()
            self._generation += 1
            self._settled.notify_all()
