"""
Casekeeper - Source Package
===========================

Moderation case record-keeping for community guilds: case identifiers,
the case status state machine, field-level edit history, and the
reporting queries built on top of them.

Package Structure:
- core/: Logging, configuration, constants, errors and the SQLite database
- services/cases/: Case lifecycle controller (create, edit, delete, restore, void)
- services/global_actions/: Cross-guild propagation of global actions
- utils/: Duration parsing, case ID helpers and async fan-out helpers

Version: v1.0.0
"""

__version__ = "1.0.0"
