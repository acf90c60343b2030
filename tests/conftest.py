"""
Casekeeper - Test Fixtures
==========================

Shared fixtures for all tests.
"""

import asyncio
import os
from typing import Dict, List, Optional, Set

import pytest

# Set up test environment before importing modules
os.environ["CASES_LOG_TO_FILE"] = "0"

from casekeeper.core.config import reset_config
from casekeeper.core.database import DatabaseManager, reset_db
from casekeeper.services.cases import CaseService


CONFIG_ENV_VARS = (
    "CASES_DB_PATH",
    "CASE_PREFIX",
    "GLOBAL_CASE_PREFIX",
    "CASE_NUMBER_WIDTH",
    "DEFAULT_WARN_POINTS",
    "PROPAGATION_CONCURRENCY",
    "PROPAGATION_TIMEOUT",
    "ERROR_WEBHOOK_URL",
    "STRICT_SOFT_DELETE",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Every test starts from default configuration."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_db_path(tmp_path):
    """Create a temporary database path for testing."""
    return tmp_path / "test_cases.db"


@pytest.fixture
def test_db(temp_db_path, monkeypatch):
    """Create a fresh test database instance."""
    monkeypatch.setenv("CASES_DB_PATH", str(temp_db_path))
    reset_config()
    reset_db()

    db = DatabaseManager(temp_db_path)

    yield db

    reset_db()


@pytest.fixture
def case_service(test_db):
    """Case service bound to the test database."""
    return CaseService(db=test_db)


@pytest.fixture
def make_case(case_service):
    """Factory creating a case with sensible defaults."""
    def _make_case(**overrides):
        data = {
            "guild_id": "G1",
            "user_id": "U1",
            "user_tag": "member#0001",
            "moderator_id": "M1",
            "moderator_tag": "mod#0001",
            "action_type": "warn",
            "reason": "Spamming",
        }
        data.update(overrides)
        return case_service.create(data)
    return _make_case


# =============================================================================
# Platform Executor Double
# =============================================================================

class FakeExecutor:
    """
    In-memory PlatformActionExecutor.

    Guilds in `failing` raise, guilds in `hanging` never return, and users
    listed in `members[guild]` are the only ones kick/timeout can reach.
    """

    def __init__(self, guild_ids: List[str]):
        self.guild_ids = list(guild_ids)
        self.failing: Set[str] = set()
        self.hanging: Set[str] = set()
        self.members: Dict[str, Set[str]] = {gid: set() for gid in guild_ids}
        self.bans: Dict[str, Set[str]] = {gid: set() for gid in guild_ids}
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def target_guild_ids(self) -> List[str]:
        return list(self.guild_ids)

    async def _enter(self, action: str, guild_id: str, user_id: str, extra: Optional[object] = None) -> None:
        self.calls.append((action, guild_id, user_id, extra))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            if guild_id in self.hanging:
                await asyncio.sleep(3600)
            if guild_id in self.failing:
                raise RuntimeError(f"Missing permissions in {guild_id}")
        finally:
            self.in_flight -= 1

    async def ban(self, guild_id: str, user_id: str, reason: str) -> bool:
        await self._enter("ban", guild_id, user_id, reason)
        self.bans[guild_id].add(user_id)
        return True

    async def unban(self, guild_id: str, user_id: str, reason: str) -> bool:
        await self._enter("unban", guild_id, user_id, reason)
        if user_id not in self.bans[guild_id]:
            return False
        self.bans[guild_id].discard(user_id)
        return True

    async def kick(self, guild_id: str, user_id: str, reason: str) -> bool:
        await self._enter("kick", guild_id, user_id, reason)
        if user_id not in self.members[guild_id]:
            return False
        self.members[guild_id].discard(user_id)
        return True

    async def timeout(self, guild_id: str, user_id: str, seconds: int, reason: str) -> bool:
        await self._enter("timeout", guild_id, user_id, (seconds, reason))
        return user_id in self.members[guild_id]

    async def is_banned(self, guild_id: str, user_id: str) -> bool:
        if guild_id in self.failing:
            raise RuntimeError(f"Missing permissions in {guild_id}")
        return user_id in self.bans[guild_id]


@pytest.fixture
def fake_executor():
    """Executor reaching three guilds."""
    return FakeExecutor(["G1", "G2", "G3"])


@pytest.fixture
def make_executor():
    """Factory for executors reaching the given guilds."""
    return FakeExecutor
