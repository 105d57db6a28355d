"""
Unit tests for notification derivation and persisted notification state.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from apps.casework.notifications.center import (
    KEY_DISMISSED_IDS,
    KEY_NOTIFICATIONS,
    KEY_PROCESSED_CASE_IDS,
    NotificationCenter,
    is_admission,
    merge_cases,
)
from packages.shared.models import NotificationType
from packages.shared.storage import JsonFileStateStore, MemoryStateStore

NOW = datetime(2024, 3, 1, tzinfo=timezone.utc)


# ── Fixtures ──────────────────────────────────────────────────────────────

def _make_case(case_id: int = 1, status: str = "active", days_since_update: int = 0, **extra) -> dict:
    case = {
        "id": case_id,
        "firstName": "Ana",
        "lastName": "Cruz",
        "status": status,
        "programType": "Residential",
        "lastUpdated": (NOW - timedelta(days=days_since_update)).isoformat(),
    }
    case.update(extra)
    return case


def _center(store=None, now: datetime = NOW) -> NotificationCenter:
    return NotificationCenter(store=store if store is not None else MemoryStateStore(), now=lambda: now)


# ── Derivation ────────────────────────────────────────────────────────────


class TestDerive:
    def test_new_active_case(self):
        center = _center()
        fresh = center.derive([_make_case()])
        assert [n.id for n in fresh] == ["case-1", "admission-1"]
        assert [n.type for n in fresh] == [NotificationType.NEW, NotificationType.ADMISSION]
        assert fresh[0].title == "Ana Cruz"
        assert fresh[0].message == "New Case Added"
        assert fresh[1].message == "New Admission"
        assert fresh[0].case_id == "1"
        assert fresh[0].program_type == "Residential"
        assert center.unread_count == 2

    def test_idempotent(self):
        center = _center()
        center.derive([_make_case()])
        assert center.derive([_make_case()]) == []
        assert len(center.notifications) == 2

    def test_discharged_case_with_stale_update(self):
        fresh = _center().derive([_make_case(status="archived", days_since_update=45)])
        by_id = {n.id: n for n in fresh}
        assert set(by_id) == {"case-1", "archived-1", "followup-1"}
        assert by_id["archived-1"].message == "Case Discharged"
        reminder = by_id["followup-1"]
        assert reminder.type is NotificationType.REMINDER
        assert reminder.title == "Follow-up Reminder"
        assert reminder.message == "Follow-up required for Ana Cruz's case - no updates in 45 days"

    def test_followup_threshold(self):
        assert "followup-1" not in {n.id for n in _center().derive([_make_case(days_since_update=29)])}
        assert "followup-1" in {n.id for n in _center().derive([_make_case(days_since_update=30)])}

    def test_closed_is_discharge_but_active_bucket(self):
        ids = {n.id for n in _center().derive([_make_case(status="closed")])}
        assert "archived-1" in ids
        assert "admission-1" not in ids

    def test_after_care_admission_needs_active_flag(self):
        assert not is_admission({"status": "after care"})
        assert is_admission({"status": "after care", "isActive": True})
        assert not is_admission({"status": "discharge", "isActive": True})

    def test_case_created_fires_once_per_case(self):
        center = _center()
        center.derive([_make_case()])
        center.remove_notification("case-1")
        center.derive([_make_case(status="archived")])
        assert "case-1" not in {n.id for n in center.notifications}
        assert "archived-1" in {n.id for n in center.notifications}

    def test_dismissed_case_created_unchanged_list(self):
        center = _center()
        center.derive([_make_case()])
        center.remove_notification("case-1")
        assert center.derive([_make_case()]) == []
        assert [n.id for n in center.notifications] == ["admission-1"]

    def test_newest_first(self):
        center = _center()
        center.derive([_make_case(1)])
        center.derive([_make_case(2)])
        assert [n.id for n in center.notifications] == ["case-2", "admission-2", "case-1", "admission-1"]

    def test_cap(self):
        center = _center()
        center.derive([_make_case(i) for i in range(40)])
        assert len(center.notifications) == 50

    def test_cap_across_passes(self):
        center = _center()
        center.derive([_make_case(i) for i in range(20)])
        center.derive([_make_case(i) for i in range(20, 40)])
        ids = [n.id for n in center.notifications]
        assert len(ids) == 50
        assert ids[0] == "case-20"
        assert "case-0" in ids
        assert "admission-19" not in ids
        assert [n.id for n in _center(center.store).notifications] == ids

    def test_cases_without_id_ignored(self):
        assert _center().derive([{"firstName": "Nobody"}]) == []

    def test_merge_prefers_all_cases(self):
        merged = merge_cases([{"id": 1, "status": "active"}], [{"id": "1", "status": "archived"}, {"id": 2}])
        assert len(merged) == 2
        assert merged[0]["status"] == "archived"

    def test_all_cases_contribute(self):
        fresh = _center().derive([], all_cases=[_make_case(7)])
        assert "case-7" in {n.id for n in fresh}


# ── State ─────────────────────────────────────────────────────────────────


class TestState:
    def test_dismissal_survives_reload(self):
        store = MemoryStateStore()
        center = _center(store)
        center.derive([_make_case()])
        center.remove_notification("admission-1")

        reloaded = _center(store)
        assert reloaded.derive([_make_case()]) == []
        assert [n.id for n in reloaded.notifications] == ["case-1"]
        assert "admission-1" in store.load(KEY_DISMISSED_IDS)

    def test_persisted_keys(self):
        store = MemoryStateStore()
        _center(store).derive([_make_case()])
        assert [n["id"] for n in store.load(KEY_NOTIFICATIONS)] == ["case-1", "admission-1"]
        assert store.load(KEY_PROCESSED_CASE_IDS) == ["1"]

    def test_mark_as_read(self):
        center = _center()
        center.derive([_make_case()])
        assert center.mark_as_read("case-1") is True
        assert center.mark_as_read("missing") is False
        assert center.unread_count == 1
        center.mark_all_as_read()
        assert center.unread_count == 0

    def test_reset_dismisses_everything(self):
        center = _center()
        center.derive([_make_case()])
        center.reset_notifications()
        assert center.notifications == []
        assert center.derive([_make_case()]) == []

    def test_add_notification(self):
        center = _center()
        note = center.add_notification("Reminder", "Submit monthly report", type=NotificationType.REMINDER)
        assert note.id.startswith("notification-")
        assert center.notifications[0] is note
        assert note.color == "#E67E22"

    def test_json_file_store_round_trip(self, tmp_path):
        path = tmp_path / "state" / "notifications.json"
        center = _center(JsonFileStateStore(path))
        center.derive([_make_case()])
        reloaded = _center(JsonFileStateStore(path))
        assert [n.id for n in reloaded.notifications] == ["case-1", "admission-1"]

    def test_corrupt_state_file_reads_empty(self, tmp_path):
        path = tmp_path / "notifications.json"
        path.write_text("{not json", encoding="utf-8")
        center = _center(JsonFileStateStore(path))
        assert center.notifications == []
        center.derive([_make_case()])
        assert len(_center(JsonFileStateStore(path)).notifications) == 2
