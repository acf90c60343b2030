"""
Casekeeper - Case Service Tests
===============================

Tests for case creation, edits and the status state machine.
"""

import threading

import pytest

from casekeeper.core.errors import (
    CaseNotFoundError,
    CaseValidationError,
    ErrorCode,
    InvalidTransitionError,
    StorageFailure,
)
from casekeeper.services.cases import CaseService, TRANSITIONS, can_transition


# =============================================================================
# Creation
# =============================================================================

class TestCreateCase:
    """Tests for CaseService.create."""

    def test_create_returns_full_active_case(self, make_case):
        """Test a new case is active with an allocated ID."""
        case = make_case(points=2, evidence="https://example.com/shot.png")

        assert case["case_id"] == "CASE-0001"
        assert case["status"] == "active"
        assert case["points"] == 2
        assert case["evidence"] == "https://example.com/shot.png"
        assert case["is_global"] is False
        assert case["created_at"] == case["updated_at"]
        assert case["deleted_at"] is None and case["voided_at"] is None

    def test_ids_increase_per_guild(self, make_case):
        """Test consecutive cases in one guild get consecutive IDs."""
        ids = [make_case()["case_id"] for _ in range(3)]
        assert ids == ["CASE-0001", "CASE-0002", "CASE-0003"]

    def test_integer_ids_are_stored_as_text(self, make_case):
        """Test Discord snowflake ints are accepted."""
        case = make_case(guild_id=123456789012345678, user_id=42, moderator_id=7)

        assert case["guild_id"] == "123456789012345678"
        assert case["user_id"] == "42"
        assert case["moderator_id"] == "7"

    def test_warn_points_default(self, make_case):
        """Test warn points default to 1."""
        assert make_case()["points"] == 1

    def test_warn_points_default_from_config(self, case_service, make_case):
        """Test DEFAULT_WARN_POINTS changes the default."""
        case_service.config.default_warn_points = 3
        assert make_case()["points"] == 3

    def test_global_guild_forces_global_scope(self, make_case):
        """Test a GLOBAL guild ID issues a GLOBAL case."""
        case = make_case(guild_id="GLOBAL", action_type="ban")

        assert case["case_id"] == "GLOBAL-0001"
        assert case["is_global"] is True

    def test_global_action_forces_global_scope(self, make_case):
        """Test global_* actions are always global cases."""
        case = make_case(guild_id="G1", action_type="global_kick")

        assert case["case_id"] == "GLOBAL-0001"
        assert case["guild_id"] == "GLOBAL"

    def test_unban_defaults_reason(self, make_case):
        """Test non-punitive actions don't need a reason."""
        case = make_case(action_type="unban", reason=None)
        assert case["reason"] == "No reason provided"

    def test_create_writes_audit_row(self, case_service, make_case):
        """Test creation is recorded in the audit trail."""
        case = make_case()

        trail = case_service.audit_trail(case["case_id"])
        assert len(trail) == 1
        assert trail[0]["action"] == "CASE_CREATE"
        assert trail[0]["to_status"] == "active"
        assert trail[0]["actor_id"] == "M1"

    @pytest.mark.parametrize("missing", ["guild_id", "user_id", "moderator_id", "action_type"])
    def test_missing_required_field(self, case_service, missing):
        """Test required identity fields are enforced."""
        data = {
            "guild_id": "G1", "user_id": "U1", "moderator_id": "M1",
            "action_type": "warn", "reason": "r",
        }
        del data[missing]

        with pytest.raises(CaseValidationError) as exc_info:
            case_service.create(data)
        assert exc_info.value.code == ErrorCode.VALIDATION_MISSING_FIELD

    def test_missing_reason_for_punitive_action(self, make_case):
        """Test punitive actions require a reason."""
        with pytest.raises(CaseValidationError) as exc_info:
            make_case(action_type="ban", reason="   ")
        assert exc_info.value.details["field"] == "reason"

    def test_invalid_action_type(self, make_case):
        """Test unknown action types are rejected."""
        with pytest.raises(CaseValidationError) as exc_info:
            make_case(action_type="smite")
        assert exc_info.value.code == ErrorCode.VALIDATION_INVALID_ACTION

    def test_invalid_duration(self, make_case):
        """Test unparseable durations are rejected."""
        with pytest.raises(CaseValidationError) as exc_info:
            make_case(action_type="mute", duration="soon")
        assert exc_info.value.code == ErrorCode.VALIDATION_INVALID_DURATION

    def test_points_on_non_warn_rejected(self, make_case):
        """Test points are only accepted on warns."""
        with pytest.raises(CaseValidationError) as exc_info:
            make_case(action_type="kick", points=5)
        assert exc_info.value.code == ErrorCode.VALIDATION_INVALID_POINTS

    def test_points_out_of_range(self, make_case):
        """Test warn points must be at least 1."""
        with pytest.raises(CaseValidationError):
            make_case(points=0)

    def test_rejected_create_does_not_consume_id(self, case_service, make_case):
        """Test a validation failure leaves the counter untouched."""
        with pytest.raises(CaseValidationError):
            make_case(action_type="smite")

        assert make_case()["case_id"] == "CASE-0001"

    def test_failing_hook_rolls_back_case(self, case_service, make_case):
        """Test an on_created failure undoes the case and the counter."""
        def hook(tx, case):
            raise CaseValidationError(ErrorCode.VALIDATION_NOT_GLOBALLY_BANNED)

        with pytest.raises(CaseValidationError):
            case_service.create({
                "guild_id": "G1", "user_id": "U1", "moderator_id": "M1",
                "action_type": "warn", "reason": "r",
            }, on_created=hook)

        assert case_service.get("CASE-0001") is None
        assert make_case()["case_id"] == "CASE-0001"


# =============================================================================
# Concurrency
# =============================================================================

class TestConcurrentCreation:
    """Tests for identifier uniqueness under concurrent callers."""

    def test_threads_get_contiguous_distinct_ids(self, case_service):
        """Test n concurrent creates yield n distinct, contiguous IDs."""
        n = 25
        results = []
        errors = []
        lock = threading.Lock()

        def worker(index):
            try:
                case = case_service.create({
                    "guild_id": "G1", "user_id": f"U{index}", "moderator_id": "M1",
                    "action_type": "warn", "reason": "burst",
                })
                with lock:
                    results.append(case["case_id"])
            except Exception as e:  # noqa: BLE001
                with lock:
                    errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(set(results)) == n
        assert sorted(results) == [f"CASE-{i:04d}" for i in range(1, n + 1)]
        assert case_service.db.get_case_counter("G1") == n


class TestConcurrentTransitions:
    """Tests for transitions racing on one case."""

    @pytest.mark.parametrize("round_", range(10))
    def test_edit_racing_void(self, case_service, make_case, round_):
        """Test an edit and a void on one case leave a consistent ledger."""
        case = make_case(reason="Original")
        barrier = threading.Barrier(2)
        outcome = {}

        def do_edit():
            barrier.wait()
            try:
                case_service.edit(case["case_id"], "M2", None, {"reason": "Edited"}, "race")
                outcome["edit"] = True
            except InvalidTransitionError:
                outcome["edit"] = False

        def do_void():
            barrier.wait()
            case_service.void(case["case_id"], "M3", "bad entry")
            outcome["void"] = True

        threads = [threading.Thread(target=do_edit), threading.Thread(target=do_void)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        final = case_service.get(case["case_id"])
        edits = case_service.db.get_case_edits(case["case_id"])

        assert outcome.get("void") is True
        assert final["status"] == "voided"
        assert len(edits) == (1 if outcome["edit"] else 0)
        assert final["reason"] == ("Edited" if outcome["edit"] else "Original")


# =============================================================================
# Edits
# =============================================================================

class TestEditCase:
    """Tests for CaseService.edit."""

    def test_edit_round_trip(self, case_service, make_case):
        """Test an edited reason is stored with exactly one history entry."""
        case = make_case(reason="Original")

        case_service.edit(case["case_id"], "M2", "mod2#0002", {"reason": "X"}, "why")
        updated = case_service.get(case["case_id"])
        history = case_service.history(case["case_id"])

        assert updated["reason"] == "X"
        assert len(history) == 1
        assert history[0]["field_changed"] == "reason"
        assert history[0]["old_value"] == "Original"
        assert history[0]["new_value"] == "X"
        assert history[0]["edit_reason"] == "why"
        assert history[0]["editor_id"] == "M2"

    def test_edit_multiple_fields_logs_each(self, case_service, make_case):
        """Test one history row per changed field."""
        case = make_case(points=1)

        updated = case_service.edit(
            case["case_id"], "M1", None,
            {"reason": "Flooding", "evidence": "msg link", "points": 3},
            "escalation",
        )

        assert updated["points"] == 3
        fields = sorted(edit["field_changed"] for edit in case_service.history(case["case_id"]))
        assert fields == ["evidence", "points", "reason"]

    def test_edit_bumps_updated_at(self, case_service, make_case):
        """Test updated_at moves on every edit."""
        case = make_case()
        updated = case_service.edit(case["case_id"], "M1", None, {"reason": "New"}, "typo")
        assert updated["updated_at"] > case["updated_at"]

    def test_unchanged_values_are_dropped(self, case_service, make_case):
        """Test setting a field to its current value is an empty change set."""
        case = make_case(reason="Same")

        with pytest.raises(CaseValidationError) as exc_info:
            case_service.edit(case["case_id"], "M1", None, {"reason": "Same"}, "noop")
        assert exc_info.value.code == ErrorCode.VALIDATION_EMPTY_CHANGES
        assert case_service.history(case["case_id"]) == []

    def test_empty_changes_rejected(self, case_service, make_case):
        """Test an empty change set is rejected."""
        case = make_case()
        with pytest.raises(CaseValidationError) as exc_info:
            case_service.edit(case["case_id"], "M1", None, {}, "nothing")
        assert exc_info.value.code == ErrorCode.VALIDATION_EMPTY_CHANGES

    def test_edit_reason_required(self, case_service, make_case):
        """Test an edit needs its own justification."""
        case = make_case()
        with pytest.raises(CaseValidationError):
            case_service.edit(case["case_id"], "M1", None, {"reason": "New"}, " ")

    def test_immutable_fields_rejected(self, case_service, make_case):
        """Test subject and action cannot be edited."""
        case = make_case()
        with pytest.raises(CaseValidationError) as exc_info:
            case_service.edit(case["case_id"], "M1", None, {"user_id": "U2"}, "wrong user")
        assert exc_info.value.code == ErrorCode.VALIDATION_FIELD_NOT_EDITABLE

    def test_points_only_on_warns(self, case_service, make_case):
        """Test points cannot be edited on a non-warn case."""
        case = make_case(action_type="kick")
        with pytest.raises(CaseValidationError) as exc_info:
            case_service.edit(case["case_id"], "M1", None, {"points": 2}, "why")
        assert exc_info.value.code == ErrorCode.VALIDATION_FIELD_NOT_EDITABLE

    def test_edit_deleted_case_rejected(self, case_service, make_case):
        """Test only active cases can be edited."""
        case = make_case()
        case_service.soft_delete(case["case_id"], "M1")

        with pytest.raises(InvalidTransitionError) as exc_info:
            case_service.edit(case["case_id"], "M1", None, {"reason": "New"}, "why")
        assert exc_info.value.code == ErrorCode.CASE_NOT_EDITABLE

    def test_edit_missing_case(self, case_service):
        """Test editing an unknown case raises NotFound."""
        with pytest.raises(CaseNotFoundError):
            case_service.edit("CASE-0404", "M1", None, {"reason": "New"}, "why")

    def test_edit_is_case_insensitive(self, case_service, make_case):
        """Test lowercase IDs reach the stored case."""
        make_case()
        updated = case_service.edit("case-0001", "M1", None, {"reason": "New"}, "why")
        assert updated["case_id"] == "CASE-0001"

    def test_failed_update_discards_ledger_rows(self, case_service, make_case, monkeypatch):
        """Test a storage failure after the ledger write leaves no edit behind."""
        case = make_case(reason="Original")

        def fail_update(tx, case_id, fields, updated_at=None):
            raise StorageFailure(details={"operation": "Update Case"})

        monkeypatch.setattr(case_service.db, "_update_case", fail_update)

        with pytest.raises(StorageFailure):
            case_service.edit(case["case_id"], "M2", None, {"reason": "X", "evidence": "link"}, "why")

        assert case_service.db.get_case_edits(case["case_id"]) == []
        assert case_service.get(case["case_id"]) == case
        assert [a["action"] for a in case_service.audit_trail(case["case_id"])] == ["CASE_CREATE"]


# =============================================================================
# State Machine
# =============================================================================

class TestTransitionTable:
    """Tests for the transition table itself."""

    def test_table_shape(self):
        """Test the documented transitions are present."""
        assert can_transition(None, "create")
        assert can_transition("active", "soft_delete")
        assert can_transition("deleted", "restore")
        assert can_transition("active", "void")
        assert can_transition("deleted", "void")

    def test_voided_is_terminal(self):
        """Test no event leaves the voided state."""
        assert not any(can_transition("voided", event) for event in TRANSITIONS)


class TestStateMachine:
    """Tests for soft-delete, restore and void."""

    def test_soft_delete_sets_fields(self, case_service, make_case):
        """Test soft-delete records who and when."""
        case = make_case()
        deleted = case_service.soft_delete(case["case_id"], "M2", reason="duplicate")

        assert deleted["status"] == "deleted"
        assert deleted["deleted_by"] == "M2"
        assert deleted["deleted_at"] is not None

    def test_restore_clears_delete_fields(self, case_service, make_case):
        """Test restore brings the case back and clears deletion info."""
        case = make_case()
        case_service.soft_delete(case["case_id"], "M2")
        restored = case_service.restore(case["case_id"], restored_by="M3")

        assert restored["status"] == "active"
        assert restored["deleted_at"] is None
        assert restored["deleted_by"] is None

    def test_delete_restore_cycle(self, case_service, make_case):
        """Test a case can cycle active/deleted repeatedly."""
        case = make_case()
        for _ in range(3):
            case_service.soft_delete(case["case_id"], "M1")
            case_service.restore(case["case_id"])
        assert case_service.get(case["case_id"])["status"] == "active"

    def test_double_soft_delete_rejected(self, case_service, make_case):
        """Test a second soft-delete is rejected in strict mode."""
        case = make_case()
        case_service.soft_delete(case["case_id"], "M1")

        with pytest.raises(InvalidTransitionError) as exc_info:
            case_service.soft_delete(case["case_id"], "M1")
        assert exc_info.value.code == ErrorCode.CASE_ALREADY_DELETED

    def test_double_soft_delete_idempotent_when_relaxed(self, case_service, make_case):
        """Test a repeat soft-delete is a no-op with strict mode off."""
        case_service.config.strict_soft_delete = False
        case = make_case()
        first = case_service.soft_delete(case["case_id"], "M1")
        second = case_service.soft_delete(case["case_id"], "M2")

        assert second == first
        deletes = [a for a in case_service.audit_trail(case["case_id"]) if a["action"] == "CASE_DELETE"]
        assert len(deletes) == 1

    def test_restore_active_rejected(self, case_service, make_case):
        """Test restoring an active case fails."""
        case = make_case()
        with pytest.raises(InvalidTransitionError) as exc_info:
            case_service.restore(case["case_id"])
        assert exc_info.value.code == ErrorCode.CASE_ALREADY_ACTIVE

    def test_void_from_active_and_deleted(self, case_service, make_case):
        """Test void is allowed from active and from deleted."""
        first = make_case()
        second = make_case()
        case_service.soft_delete(second["case_id"], "M1")

        assert case_service.void(first["case_id"], "M1", "bad entry")["status"] == "voided"
        voided = case_service.void(second["case_id"], "M1", "bad entry")
        assert voided["status"] == "voided"
        assert voided["void_reason"] == "bad entry"
        assert voided["voided_by"] == "M1"

    def test_void_twice_rejected(self, case_service, make_case):
        """Test a second void always fails."""
        case = make_case()
        case_service.void(case["case_id"], "M1", "bad entry")

        with pytest.raises(InvalidTransitionError) as exc_info:
            case_service.void(case["case_id"], "M2", "again")
        assert exc_info.value.code == ErrorCode.CASE_ALREADY_VOIDED

    def test_void_requires_reason(self, case_service, make_case):
        """Test void without a reason is a validation error."""
        case = make_case()
        with pytest.raises(CaseValidationError):
            case_service.void(case["case_id"], "M1", "")
        assert case_service.get(case["case_id"])["status"] == "active"

    @pytest.mark.parametrize("operation", ["restore", "soft_delete", "edit"])
    def test_voided_case_is_sealed(self, case_service, make_case, operation):
        """Test nothing can be done to a voided case."""
        case = make_case()
        voided = case_service.void(case["case_id"], "M1", "bad entry")

        with pytest.raises(InvalidTransitionError) as exc_info:
            if operation == "restore":
                case_service.restore(case["case_id"])
            elif operation == "soft_delete":
                case_service.soft_delete(case["case_id"], "M1")
            else:
                case_service.edit(case["case_id"], "M1", None, {"reason": "x"}, "why")

        assert exc_info.value.code == ErrorCode.CASE_ALREADY_VOIDED
        assert case_service.get(case["case_id"]) == voided

    @pytest.mark.parametrize("operation", ["soft_delete", "restore", "void"])
    def test_missing_case_raises_not_found(self, case_service, operation):
        """Test transitions on an unknown case raise NotFound."""
        with pytest.raises(CaseNotFoundError):
            if operation == "soft_delete":
                case_service.soft_delete("CASE-0404", "M1")
            elif operation == "restore":
                case_service.restore("CASE-0404")
            else:
                case_service.void("CASE-0404", "M1", "reason")

    def test_malformed_case_id(self, case_service):
        """Test malformed IDs are a validation error on mutations."""
        with pytest.raises(CaseValidationError) as exc_info:
            case_service.restore("not a case")
        assert exc_info.value.code == ErrorCode.VALIDATION_INVALID_CASE_ID

    def test_get_unknown_returns_none(self, case_service):
        """Test get never raises for a missing case."""
        assert case_service.get("CASE-0404") is None
        assert case_service.get("") is None

    def test_audit_trail_records_transitions(self, case_service, make_case):
        """Test every transition appears in the audit trail, newest first."""
        case = make_case()
        case_service.soft_delete(case["case_id"], "M1", reason="dup")
        case_service.restore(case["case_id"], "M2")
        case_service.void(case["case_id"], "M3", "bad entry")

        trail = case_service.audit_trail(case["case_id"], include_voided=True)
        assert [a["action"] for a in trail] == [
            "CASE_VOID", "CASE_RESTORE", "CASE_DELETE", "CASE_CREATE",
        ]
        assert trail[2]["details"] == {"reason": "dup"}
        assert (trail[0]["from_status"], trail[0]["to_status"]) == ("active", "voided")

    def test_rejected_transition_writes_nothing(self, case_service, make_case):
        """Test a guard rejection leaves the case and audit trail untouched."""
        case = make_case()
        before = case_service.get(case["case_id"])

        with pytest.raises(InvalidTransitionError):
            case_service.restore(case["case_id"])

        assert case_service.get(case["case_id"]) == before
        assert len(case_service.audit_trail(case["case_id"])) == 1


# =============================================================================
# History Visibility
# =============================================================================

class TestVoidedHistory:
    """Tests for edit history of voided cases."""

    def test_history_hidden_after_void(self, case_service, make_case):
        """Test voided case history is hidden by default."""
        case = make_case()
        case_service.edit(case["case_id"], "M1", None, {"reason": "New"}, "why")
        case_service.void(case["case_id"], "M1", "bad entry")

        assert case_service.history(case["case_id"]) == []

    def test_history_available_for_compliance(self, case_service, make_case):
        """Test include_voided exposes the preserved rows."""
        case = make_case()
        case_service.edit(case["case_id"], "M1", None, {"reason": "New"}, "why")
        case_service.void(case["case_id"], "M1", "bad entry")

        history = case_service.history(case["case_id"], include_voided=True)
        assert len(history) == 1
        assert history[0]["new_value"] == "New"

    def test_history_of_unknown_case(self, case_service):
        """Test history of a missing case is empty."""
        assert case_service.history("CASE-0404") == []

    def test_audit_trail_hidden_after_void(self, case_service, make_case):
        """Test the audit trail of a voided case follows the history rule."""
        case = make_case()
        case_service.edit(case["case_id"], "M1", None, {"reason": "New"}, "why")
        case_service.void(case["case_id"], "M1", "bad entry")

        assert case_service.audit_trail(case["case_id"]) == []

        trail = case_service.audit_trail(case["case_id"], include_voided=True)
        assert [a["action"] for a in trail] == ["CASE_VOID", "CASE_EDIT", "CASE_CREATE"]

    def test_audit_trail_visible_for_deleted_case(self, case_service, make_case):
        """Test only voiding hides the audit trail."""
        case = make_case()
        case_service.soft_delete(case["case_id"], "M1")

        assert len(case_service.audit_trail(case["case_id"])) == 2


class TestServiceWiring:
    """Tests for CaseService construction."""

    def test_defaults_to_global_database(self, test_db):
        """Test CaseService picks up the singleton database."""
        service = CaseService()
        assert service.db is test_db
