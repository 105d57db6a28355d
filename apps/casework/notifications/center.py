"""
Notification center: derives case notifications and keeps their state.

Derivation is idempotent across runs. Each notification has a deterministic
id per case and kind, and three persisted sets decide what may be emitted:
the current list, the processed case ids (case-created fires once per case)
and the dismissal set (removed ids never come back).

State is loaded from the store when the center is created and written back
after every mutation.
"""
from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from apps.casework.lib.derived_values import parse_timestamp
from apps.casework.lib.field_normalizer import full_name, normalize_fields
from apps.casework.lib.status import classify, is_discharged_equivalent
from packages.shared.models import CaseBucket, Notification, NotificationType
from packages.shared.storage import JsonFileStateStore, StateStore

logger = logging.getLogger("hopetrack.notifications")

MAX_NOTIFICATIONS = 50
FOLLOWUP_AFTER_DAYS = 30

# Store keys
KEY_NOTIFICATIONS = "caseNotifications"
KEY_PROCESSED_CASE_IDS = "processedCaseIds"
KEY_DISMISSED_IDS = "dismissedNotificationIds"
KEY_LAST_CHECK = "lastNotificationCheck"

# (color, icon) per kind
NOTIFICATION_STYLE: dict[NotificationType, tuple[str, str]] = {
    NotificationType.NEW: ("#2980B9", "case"),
    NotificationType.ADMISSION: ("#27AE60", "admission"),
    NotificationType.ARCHIVED: ("#7F8C8D", "archive"),
    NotificationType.REMINDER: ("#E67E22", "clock"),
}


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def merge_cases(
    cases: Iterable[Mapping[str, Any]] | None,
    all_cases: Iterable[Mapping[str, Any]] | None = None,
) -> list[dict[str, Any]]:
    """Union of both lists keyed by case id; entries from ``all_cases`` win field by field."""
    merged: dict[str, dict[str, Any]] = {}
    for source in (cases or [], all_cases or []):
        for case in source:
            if not isinstance(case, Mapping):
                continue
            case_id = normalize_fields(case).id
            if not case_id:
                continue
            merged.setdefault(case_id, {}).update(case)
    return list(merged.values())


def is_admission(case: Mapping[str, Any]) -> bool:
    status = case.get("status")
    if is_discharged_equivalent(status):
        return False
    if case.get("isActive") is True or case.get("is_active") is True:
        return True
    return classify(status) == CaseBucket.ACTIVE


class NotificationCenter:
    def __init__(
        self,
        store: StateStore | None = None,
        now: Callable[[], datetime] | None = None,
        max_items: int = MAX_NOTIFICATIONS,
    ):
        self.store = store if store is not None else JsonFileStateStore()
        self._now = now or (lambda: datetime.now(timezone.utc))
        self.max_items = max_items
        self.notifications: list[Notification] = []
        self.processed_case_ids: set[str] = set()
        self.dismissed_ids: set[str] = set()
        self.last_check: str | None = None
        self.load()

    def _current_time(self) -> datetime:
        now = self._now()
        return now if now.tzinfo else now.replace(tzinfo=timezone.utc)

    # ── Persistence hooks ─────────────────────────────────────────────

    def load(self) -> None:
        items: list[Notification] = []
        for raw in _as_list(self.store.load(KEY_NOTIFICATIONS, [])):
            try:
                items.append(Notification.model_validate(raw))
            except ValidationError as exc:
                logger.warning(f"Dropping unreadable stored notification: {exc.error_count()} errors")
        self.notifications = items[: self.max_items]
        self.processed_case_ids = {str(v) for v in _as_list(self.store.load(KEY_PROCESSED_CASE_IDS, []))}
        self.dismissed_ids = {str(v) for v in _as_list(self.store.load(KEY_DISMISSED_IDS, []))}
        last_check = self.store.load(KEY_LAST_CHECK)
        self.last_check = last_check if isinstance(last_check, str) else None

    def save(self) -> None:
        self.store.save(KEY_NOTIFICATIONS, [n.model_dump(mode="json") for n in self.notifications])
        self.store.save(KEY_PROCESSED_CASE_IDS, sorted(self.processed_case_ids))
        self.store.save(KEY_DISMISSED_IDS, sorted(self.dismissed_ids))
        self.store.save(KEY_LAST_CHECK, self.last_check)

    # ── Derivation ────────────────────────────────────────────────────

    def _make(
        self,
        notification_id: str,
        kind: NotificationType,
        title: str,
        message: str,
        case_id: str | None = None,
        program_type: str | None = None,
    ) -> Notification:
        color, icon = NOTIFICATION_STYLE[kind]
        return Notification(
            id=notification_id,
            title=title,
            message=message,
            timestamp=self._current_time().isoformat(),
            type=kind,
            read=False,
            color=color,
            icon_type=icon,
            case_id=case_id,
            program_type=program_type,
        )

    def derive(
        self,
        cases: Iterable[Mapping[str, Any]] | None,
        all_cases: Iterable[Mapping[str, Any]] | None = None,
    ) -> list[Notification]:
        """Run one derivation pass. Returns the notifications added by this pass."""
        merged = merge_cases(cases, all_cases)
        if not merged:
            return []

        now = self._current_time()
        known_ids = {n.id for n in self.notifications}
        fresh: list[Notification] = []

        def offer(notification: Notification) -> None:
            if notification.id in known_ids or notification.id in self.dismissed_ids:
                return
            known_ids.add(notification.id)
            fresh.append(notification)

        for case in merged:
            fields = normalize_fields(case)
            case_id = fields.id
            name = full_name(fields) or "Unnamed case"
            program = fields.program_type or fields.case_type or None

            if case_id not in self.processed_case_ids:
                offer(self._make(f"case-{case_id}", NotificationType.NEW, name, "New Case Added", case_id, program))
                self.processed_case_ids.add(case_id)
            if is_admission(case):
                offer(self._make(f"admission-{case_id}", NotificationType.ADMISSION, name, "New Admission", case_id, program))
            if is_discharged_equivalent(case.get("status")):
                offer(self._make(f"archived-{case_id}", NotificationType.ARCHIVED, name, "Case Discharged", case_id, program))

        for case in merged:
            fields = normalize_fields(case)
            updated = parse_timestamp(fields.last_updated or fields.updated_at)
            if updated is None:
                continue
            days = math.floor((now - updated).total_seconds() / 86400)
            if days < FOLLOWUP_AFTER_DAYS:
                continue
            name = full_name(fields) or "Unnamed case"
            offer(
                self._make(
                    f"followup-{fields.id}",
                    NotificationType.REMINDER,
                    "Follow-up Reminder",
                    f"Follow-up required for {name}'s case - no updates in {days} days",
                    fields.id,
                    fields.program_type or fields.case_type or None,
                )
            )

        if fresh:
            self.notifications = (fresh + self.notifications)[: self.max_items]
            logger.info(f"Derived {len(fresh)} new notifications from {len(merged)} cases")
        self.last_check = now.isoformat()
        self.save()
        return fresh

    # ── User actions ──────────────────────────────────────────────────

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    def mark_as_read(self, notification_id: str) -> bool:
        for n in self.notifications:
            if n.id == notification_id:
                n.read = True
                self.save()
                return True
        return False

    def mark_all_as_read(self) -> None:
        for n in self.notifications:
            n.read = True
        self.save()

    def add_notification(
        self,
        title: str,
        message: str,
        type: NotificationType = NotificationType.NEW,
        case_id: str | None = None,
        program_type: str | None = None,
    ) -> Notification:
        """Ad hoc notification with a random id; subject to the same cap."""
        stamp = int(self._current_time().timestamp() * 1000)
        notification = self._make(
            f"notification-{stamp}-{uuid.uuid4().hex[:8]}",
            NotificationType(type),
            title,
            message,
            case_id,
            program_type,
        )
        self.notifications = [notification, *self.notifications][: self.max_items]
        self.save()
        return notification

    def remove_notification(self, notification_id: str) -> None:
        """Remove a notification and remember the id so derivation never recreates it."""
        self.notifications = [n for n in self.notifications if n.id != notification_id]
        self.dismissed_ids.add(notification_id)
        self.save()

    def reset_notifications(self) -> None:
        """Dismiss everything currently listed."""
        self.dismissed_ids.update(n.id for n in self.notifications)
        self.notifications = []
        self.save()
