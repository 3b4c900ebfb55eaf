"""
Statement fingerprinting and the whole-file deduplication gate.

A fingerprint identifies one statement file: institution id, account id and
statement reference date. Re-submitting a file with a known fingerprint is
rejected as a whole; partial imports of a period are never produced.

The gate itself is stateless. Whoever persists accepted fingerprints must
do an atomic check-then-insert (see FingerprintStore).
"""
import hashlib
import threading
from dataclasses import dataclass
from typing import Collection, Dict, Optional, Protocol, Set

from ofx_ingest.common.logging_config import get_logger
from ofx_ingest.common.models import StatementAccount
from ofx_ingest.common.tags import find_tag

logger = get_logger(__name__)

FINGERPRINT_SEPARATOR = "_"
CONTENT_HASH_PREFIX = "sha256:"

REASON_NEW = "new_statement"
REASON_DUPLICATE = "already_imported"


@dataclass(frozen=True)
class GateDecision:
    accepted: bool
    reason: str


def read_statement_account(text: str) -> StatementAccount:
    """Reads the statement-level identity tags."""
    return StatementAccount(
        bank_id=find_tag(text, 'BANKID') or "",
        account_id=find_tag(text, 'ACCTID') or "",
        period_start=find_tag(text, 'DTSTART') or "",
        period_end=find_tag(text, 'DTEND') or "",
    )


def compute_content_hash(text: str) -> str:
    """SHA256 of the document text, for files carrying no identity tags."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def compute_fingerprint(text: str) -> str:
    """
    Compute the file fingerprint of a repaired statement.

    Format: ``{BANKID}_{ACCTID}_{DTSERVER or DTASOF}``, empty slots kept in
    place. When all three are missing: ``sha256:{hash of the text}``.
    """
    bank_id = find_tag(text, 'BANKID') or ""
    account_id = find_tag(text, 'ACCTID') or ""
    reference_date = find_tag(text, 'DTSERVER') or find_tag(text, 'DTASOF') or ""

    if not (bank_id or account_id or reference_date):
        fingerprint = CONTENT_HASH_PREFIX + compute_content_hash(text)
        logger.debug("No identity tags found, fingerprint falls back to content hash")
        return fingerprint

    return FINGERPRINT_SEPARATOR.join([bank_id, account_id, reference_date])


def check_fingerprint(fingerprint: str, existing: Optional[Collection[str]]) -> GateDecision:
    """Accepts a statement unless its fingerprint is already known."""
    if existing and fingerprint in existing:
        logger.warning("Statement already imported", fingerprint=fingerprint)
        return GateDecision(False, REASON_DUPLICATE)
    return GateDecision(True, REASON_NEW)


class FingerprintStore(Protocol):
    """
    Persistence-side contract for accepted fingerprints.

    ``add_if_absent`` must be atomic: two concurrent submissions of the same
    file may not both get True.
    """

    def contains(self, scope_id: str, fingerprint: str) -> bool:
        ...

    def add_if_absent(self, scope_id: str, fingerprint: str) -> bool:
        ...

    def snapshot(self, scope_id: str) -> Set[str]:
        ...


class InMemoryFingerprintStore:
    """Lock-protected FingerprintStore keyed by wallet/account scope."""

    def __init__(self):
        self._fingerprints: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def contains(self, scope_id: str, fingerprint: str) -> bool:
        with self._lock:
            return fingerprint in self._fingerprints.get(scope_id, ())

    def add_if_absent(self, scope_id: str, fingerprint: str) -> bool:
        with self._lock:
            known = self._fingerprints.setdefault(scope_id, set())
            if fingerprint in known:
                return False
            known.add(fingerprint)
            return True

    def snapshot(self, scope_id: str) -> Set[str]:
        """Copy of the fingerprints known for ``scope_id``."""
        with self._lock:
            return set(self._fingerprints.get(scope_id, ()))

    def clear(self):
        with self._lock:
            self._fingerprints.clear()
