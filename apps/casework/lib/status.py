"""
Case status classification.

Status values are free text coming from several generations of the case
API ("Archived", "discharge", "After Care", ...), occasionally a boolean.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from packages.shared.models.enums import CaseBucket

ARCHIVED_STATUSES: frozenset[str] = frozenset({"archives", "reintegrate", "discharge", "archived"})
AFTER_CARE_STATUSES: frozenset[str] = frozenset({"after care", "aftercare"})

# Closed-out statuses that count as a discharge for notifications but are
# not part of the archived list bucket.
DISCHARGED_EQUIVALENT_STATUSES: frozenset[str] = ARCHIVED_STATUSES | frozenset(
    {"closed", "completed", "inactive"}
)


def _normalized(status: Any) -> str:
    if status is None or isinstance(status, bool):
        return ""
    return str(status).strip().lower()


def classify(status: Any) -> CaseBucket:
    s = _normalized(status)
    if s in ARCHIVED_STATUSES:
        return CaseBucket.ARCHIVED
    if s in AFTER_CARE_STATUSES:
        return CaseBucket.AFTER_CARE
    return CaseBucket.ACTIVE


def display_label(status: Any) -> Any:
    """
    Human label for the two closed-out buckets.

    Active statuses have no mapping and are returned exactly as given.
    """
    s = _normalized(status)
    if s in AFTER_CARE_STATUSES:
        return "After Care"
    if s in ARCHIVED_STATUSES:
        return "Discharged"
    return status


def is_archived_status(status: Any) -> bool:
    return classify(status) is not CaseBucket.ACTIVE


def is_discharged_equivalent(status: Any) -> bool:
    if status is False:
        return True
    return _normalized(status) in DISCHARGED_EQUIVALENT_STATUSES


def cases_in_bucket(cases: Iterable[Mapping[str, Any]], bucket: CaseBucket) -> list[Mapping[str, Any]]:
    return [c for c in cases if isinstance(c, Mapping) and classify(c.get("status")) == bucket]
