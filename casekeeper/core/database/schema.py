"""
Database Schema Module
======================

Table definitions for cases, counters, edit history, the transition
audit log and the global ban registry.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from casekeeper.core.database.manager import DatabaseManager


class SchemaMixin:
    """Mixin for database schema initialization."""

    def _init_tables(self: "DatabaseManager") -> None:
        """
        Initialize all database tables.

        DESIGN: Tables are created if not exist, allowing safe restarts.
        Indexes cover the store's secondary lookups:
        (guild_id, user_id), (guild_id, status) and moderator_id.
        """
        conn = self._live_connection()
        cursor = conn.cursor()

        # -----------------------------------------------------------------
        # Cases Table
        # DESIGN: One row per moderation action. Timestamps are UTC
        # ISO-8601 strings with microseconds so text order is time order.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS cases (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                case_id TEXT UNIQUE NOT NULL,
                guild_id TEXT NOT NULL,
                is_global INTEGER NOT NULL DEFAULT 0,
                user_id TEXT NOT NULL,
                user_tag TEXT,
                moderator_id TEXT NOT NULL,
                moderator_tag TEXT,
                action_type TEXT NOT NULL,
                reason TEXT,
                evidence TEXT,
                duration TEXT,
                points INTEGER NOT NULL DEFAULT 1,
                status TEXT NOT NULL DEFAULT 'active'
                    CHECK (status IN ('active', 'deleted', 'voided')),
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                deleted_at TEXT,
                deleted_by TEXT,
                voided_at TEXT,
                voided_by TEXT,
                void_reason TEXT
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_cases_guild_user ON cases(guild_id, user_id, created_at DESC)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_cases_guild_status ON cases(guild_id, status)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_cases_moderator ON cases(moderator_id, created_at DESC)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_cases_action ON cases(guild_id, action_type)"
        )

        # -----------------------------------------------------------------
        # Case Counters Table
        # DESIGN: One row per scope (guild ID or GLOBAL). Only ever
        # incremented, inside the transaction that inserts the case.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS case_counters (
                scope TEXT PRIMARY KEY,
                current_number INTEGER NOT NULL DEFAULT 0
                    CHECK (current_number >= 0)
            )
        """)
        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS trg_case_counters_monotonic
            BEFORE UPDATE OF current_number ON case_counters
            WHEN NEW.current_number < OLD.current_number
            BEGIN
                SELECT RAISE(ABORT, 'case counters never decrease');
            END
        """)

        # -----------------------------------------------------------------
        # Case Edits Table
        # DESIGN: Append-only ledger, one row per changed field.
        # Triggers reject UPDATE and DELETE outright.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS case_edits (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                case_id TEXT NOT NULL,
                editor_id TEXT NOT NULL,
                editor_tag TEXT,
                field_changed TEXT NOT NULL,
                old_value TEXT,
                new_value TEXT,
                edit_reason TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY (case_id) REFERENCES cases(case_id)
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_case_edits_case ON case_edits(case_id, created_at DESC)"
        )
        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS trg_case_edits_no_update
            BEFORE UPDATE ON case_edits
            BEGIN
                SELECT RAISE(ABORT, 'case_edits is append-only');
            END
        """)
        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS trg_case_edits_no_delete
            BEFORE DELETE ON case_edits
            BEGIN
                SELECT RAISE(ABORT, 'case_edits is append-only');
            END
        """)

        # -----------------------------------------------------------------
        # Case Audit Log Table
        # DESIGN: One row per create/edit/delete/restore/void, written in
        # the same transaction as the case change. Also append-only.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS case_audit_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                action TEXT NOT NULL,
                case_id TEXT NOT NULL,
                scope TEXT NOT NULL,
                actor_id TEXT,
                actor_tag TEXT,
                from_status TEXT,
                to_status TEXT,
                details TEXT,
                created_at TEXT NOT NULL
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_case_audit_case ON case_audit_log(case_id, created_at DESC)"
        )
        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS trg_case_audit_no_update
            BEFORE UPDATE ON case_audit_log
            BEGIN
                SELECT RAISE(ABORT, 'case_audit_log is append-only');
            END
        """)
        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS trg_case_audit_no_delete
            BEFORE DELETE ON case_audit_log
            BEGIN
                SELECT RAISE(ABORT, 'case_audit_log is append-only');
            END
        """)

        # -----------------------------------------------------------------
        # Global Bans Table
        # DESIGN: Registry of users banned across every guild, so new
        # guilds can carry the bans over.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS global_bans (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT UNIQUE NOT NULL,
                user_tag TEXT,
                banned_by TEXT NOT NULL,
                banned_by_tag TEXT,
                reason TEXT,
                case_id TEXT,
                banned_at TEXT NOT NULL
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_global_bans_time ON global_bans(banned_at DESC)"
        )

        # -----------------------------------------------------------------
        # Global Mutes Table
        # DESIGN: Latest global mute per user with its expiry. Rows are
        # replaced on re-mute and read as active while expires_at is ahead.
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS global_mutes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT UNIQUE NOT NULL,
                user_tag TEXT,
                muted_by TEXT NOT NULL,
                muted_by_tag TEXT,
                reason TEXT,
                duration TEXT,
                duration_seconds INTEGER,
                expires_at TEXT NOT NULL,
                case_id TEXT,
                muted_at TEXT NOT NULL
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_global_mutes_expiry ON global_mutes(expires_at)"
        )

        conn.commit()
