"""
Casekeeper - Global Moderation Service
======================================

Cross-guild ban, unban, kick and mute.

DESIGN:
    Each global action first commits a GLOBAL-scope case (and, for bans,
    unbans and mutes, the registry change in the same transaction). Only then
    is the action fanned out to every guild. A platform failure in one
    guild is recorded against that guild and never undoes the case or
    blocks the other guilds.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional

from casekeeper.core.config import Config, get_config
from casekeeper.core.constants import (
    ACTION_GLOBAL_BAN,
    ACTION_GLOBAL_KICK,
    ACTION_GLOBAL_MUTE,
    ACTION_GLOBAL_UNBAN,
    AUDIT_GLOBAL_PROPAGATION,
    CARRYOVER_DELAY,
    GLOBAL_BAN_LIST_LIMIT,
    GLOBAL_SCOPE,
)
from casekeeper.core.database.models import CaseRecord, GlobalBanRecord
from casekeeper.core.errors import CaseValidationError, ErrorCode, StorageFailure
from casekeeper.core.logger import logger
from casekeeper.services.cases import CaseService
from casekeeper.utils.async_utils import bounded_gather
from casekeeper.utils.duration import format_duration, parse_duration

from .executor import PlatformActionExecutor
from .models import CarryoverResult, GlobalStatus, PropagationResult

GuildCall = Callable[[str], Awaitable[bool]]


class GlobalModerationService:
    """Dispatcher for moderation actions that apply to every guild."""

    def __init__(
        self,
        case_service: CaseService,
        executor: PlatformActionExecutor,
        config: Optional[Config] = None,
        carryover_delay: float = CARRYOVER_DELAY,
    ) -> None:
        self.cases = case_service
        self.db = case_service.db
        self.executor = executor
        self.config = config or get_config()
        self.carryover_delay = carryover_delay

    # =========================================================================
    # Fan-out
    # =========================================================================

    async def _propagate(self, case: CaseRecord, label: str, call: GuildCall) -> PropagationResult:
        """Run `call` for every target guild and collect per-guild outcomes."""
        result = PropagationResult(case_id=case["case_id"], action=case["action_type"])
        guild_ids = self.executor.target_guild_ids()

        outcomes = await bounded_gather(
            [(f"{label} in {guild_id}", call(guild_id)) for guild_id in guild_ids],
            limit=self.config.propagation_concurrency,
            timeout=self.config.propagation_timeout,
            context=f"{label} {case['case_id']}",
        )

        for guild_id, outcome in zip(guild_ids, outcomes):
            if isinstance(outcome, asyncio.TimeoutError):
                result.failed[guild_id] = f"Timed out after {self.config.propagation_timeout:.0f}s"
            elif isinstance(outcome, BaseException):
                result.failed[guild_id] = f"{type(outcome).__name__}: {str(outcome)[:100]}"
            elif outcome:
                result.succeeded.append(guild_id)
            else:
                result.skipped.append(guild_id)

        # Audit failure is logged, never raised: the guilds were already acted on
        try:
            self.db.record_audit(
                AUDIT_GLOBAL_PROPAGATION, case["case_id"], GLOBAL_SCOPE,
                actor_id=case["moderator_id"],
                actor_tag=case["moderator_tag"],
                details={
                    "action": case["action_type"],
                    "succeeded": result.succeeded,
                    "skipped": result.skipped,
                    "failed": result.failed,
                },
            )
        except StorageFailure as e:
            logger.error("Propagation Audit Not Recorded", [
                ("Case ID", case["case_id"]),
                ("Succeeded", str(result.success_count)),
                ("Failed", str(result.failed_count)),
                ("Error", str(e.details.get("error", e))[:100]),
            ])

        details = [
            ("Case ID", case["case_id"]),
            ("User", f"{case['user_tag'] or 'Unknown'} ({case['user_id']})"),
            ("Guilds", str(result.target_count)),
            ("Succeeded", str(result.success_count)),
            ("Skipped", str(len(result.skipped))),
            ("Failed", str(result.failed_count)),
        ]
        if result.all_succeeded:
            logger.tree(f"{label} Propagated", details, emoji="🌐")
        else:
            logger.warning(f"{label} Partially Propagated", details)
        return result

    @staticmethod
    def _audit_reason(tag: str, case: CaseRecord) -> str:
        return f"[{tag}] {case['reason']} | Case: {case['case_id']}"

    # =========================================================================
    # Global Actions
    # =========================================================================

    async def global_ban(
        self,
        user_id: str,
        moderator_id: str,
        reason: str,
        user_tag: Optional[str] = None,
        moderator_tag: Optional[str] = None,
        evidence: Optional[str] = None,
    ) -> PropagationResult:
        """
        Ban a user from every guild and add them to the global ban registry.

        Raises:
            CaseValidationError: If the reason is missing.
            StorageFailure: If the case or registry write fails.
        """
        def register(tx, case: CaseRecord) -> None:
            self.db._upsert_global_ban(
                tx, case["user_id"], case["moderator_id"],
                user_tag=case["user_tag"],
                banned_by_tag=case["moderator_tag"],
                reason=case["reason"],
                case_id=case["case_id"],
            )

        case = self.cases.create({
            "guild_id": GLOBAL_SCOPE,
            "global_case": True,
            "user_id": user_id,
            "user_tag": user_tag,
            "moderator_id": moderator_id,
            "moderator_tag": moderator_tag,
            "action_type": ACTION_GLOBAL_BAN,
            "reason": reason,
            "evidence": evidence,
        }, on_created=register)

        audit_reason = self._audit_reason("GLOBAL BAN", case)
        return await self._propagate(
            case, "Global Ban",
            lambda guild_id: self.executor.ban(guild_id, case["user_id"], audit_reason),
        )

    async def global_unban(
        self,
        user_id: str,
        moderator_id: str,
        reason: Optional[str] = None,
        moderator_tag: Optional[str] = None,
    ) -> PropagationResult:
        """
        Lift a global ban in every guild and remove the registry entry.

        Raises:
            CaseValidationError: If the user is not globally banned.
        """
        ban = self.db.get_global_ban(user_id)
        if ban is None:
            raise CaseValidationError(
                ErrorCode.VALIDATION_NOT_GLOBALLY_BANNED,
                details={"user_id": str(user_id)},
            )

        def unregister(tx, case: CaseRecord) -> None:
            # Another unban may have won the race since the lookup above
            if not self.db._remove_global_ban(tx, case["user_id"]):
                raise CaseValidationError(
                    ErrorCode.VALIDATION_NOT_GLOBALLY_BANNED,
                    details={"user_id": case["user_id"]},
                )

        case = self.cases.create({
            "guild_id": GLOBAL_SCOPE,
            "global_case": True,
            "user_id": user_id,
            "user_tag": ban["user_tag"],
            "moderator_id": moderator_id,
            "moderator_tag": moderator_tag,
            "action_type": ACTION_GLOBAL_UNBAN,
            "reason": reason,
        }, on_created=unregister)

        audit_reason = self._audit_reason("GLOBAL UNBAN", case)
        return await self._propagate(
            case, "Global Unban",
            lambda guild_id: self.executor.unban(guild_id, case["user_id"], audit_reason),
        )

    async def global_kick(
        self,
        user_id: str,
        moderator_id: str,
        reason: str,
        user_tag: Optional[str] = None,
        moderator_tag: Optional[str] = None,
    ) -> PropagationResult:
        """Kick a user from every guild they are a member of."""
        case = self.cases.create({
            "guild_id": GLOBAL_SCOPE,
            "global_case": True,
            "user_id": user_id,
            "user_tag": user_tag,
            "moderator_id": moderator_id,
            "moderator_tag": moderator_tag,
            "action_type": ACTION_GLOBAL_KICK,
            "reason": reason,
        })

        audit_reason = self._audit_reason("GLOBAL KICK", case)
        return await self._propagate(
            case, "Global Kick",
            lambda guild_id: self.executor.kick(guild_id, case["user_id"], audit_reason),
        )

    async def global_mute(
        self,
        user_id: str,
        moderator_id: str,
        duration: str,
        reason: str,
        user_tag: Optional[str] = None,
        moderator_tag: Optional[str] = None,
    ) -> PropagationResult:
        """
        Time a user out in every guild they are a member of and record the
        mute, with its expiry, in the global mute registry.

        Raises:
            CaseValidationError: If the duration is missing, permanent or
                malformed (platform timeouts always expire).
        """
        seconds = parse_duration(duration)
        if seconds is None:
            raise CaseValidationError(
                ErrorCode.VALIDATION_INVALID_DURATION,
                details={"duration": duration},
            )

        def register(tx, case: CaseRecord) -> None:
            self.db._upsert_global_mute(
                tx, case["user_id"], case["moderator_id"], seconds,
                user_tag=case["user_tag"],
                muted_by_tag=case["moderator_tag"],
                reason=case["reason"],
                duration=case["duration"],
                case_id=case["case_id"],
            )

        case = self.cases.create({
            "guild_id": GLOBAL_SCOPE,
            "global_case": True,
            "user_id": user_id,
            "user_tag": user_tag,
            "moderator_id": moderator_id,
            "moderator_tag": moderator_tag,
            "action_type": ACTION_GLOBAL_MUTE,
            "reason": reason,
            "duration": duration,
        }, on_created=register)

        audit_reason = self._audit_reason("GLOBAL MUTE", case)
        logger.debug("Global Mute Duration", [
            ("Case ID", case["case_id"]),
            ("Duration", format_duration(seconds)),
        ])
        return await self._propagate(
            case, "Global Mute",
            lambda guild_id: self.executor.timeout(guild_id, case["user_id"], seconds, audit_reason),
        )

    # =========================================================================
    # Registry
    # =========================================================================

    async def carryover(self, guild_id: str) -> CarryoverResult:
        """
        Apply every registered global ban to one guild (e.g. a newly joined one).

        Bans are applied one at a time with a short pause between them.
        """
        guild_id = str(guild_id)
        bans = self.db.list_global_bans()
        result = CarryoverResult(guild_id=guild_id, total=len(bans))
        timeout = self.config.propagation_timeout

        for ban in bans:
            try:
                if await asyncio.wait_for(self.executor.is_banned(guild_id, ban["user_id"]), timeout):
                    result.already_banned += 1
                    continue

                reason = (
                    f"[GBAN CARRYOVER] {ban['reason'] or 'Global ban'}"
                    f" | Original Case: {ban['case_id'] or 'N/A'}"
                )
                await asyncio.wait_for(self.executor.ban(guild_id, ban["user_id"], reason), timeout)
                result.applied += 1
                if self.carryover_delay:
                    await asyncio.sleep(self.carryover_delay)

            except Exception as e:
                result.failed += 1
                logger.warning("Global Ban Carryover Failed", [
                    ("Guild", guild_id),
                    ("User", ban["user_id"]),
                    ("Error", str(e)[:100]),
                    ("Type", type(e).__name__),
                ])

        logger.tree("Global Ban Carryover Complete", [
            ("Guild", guild_id),
            ("Total", str(result.total)),
            ("Applied", str(result.applied)),
            ("Already Banned", str(result.already_banned)),
            ("Failed", str(result.failed)),
        ], emoji="🌐")
        return result

    def is_globally_banned(self, user_id: str) -> bool:
        return self.db.is_globally_banned(user_id)

    def list_global_bans(self, limit: int = GLOBAL_BAN_LIST_LIMIT) -> List[GlobalBanRecord]:
        """Most recent global bans."""
        return self.db.list_global_bans(limit=limit)

    def global_status(self, user_id: str) -> GlobalStatus:
        """A user's global ban entry and unexpired global mute entry, if any."""
        user_id = str(user_id)
        return GlobalStatus(
            user_id=user_id,
            ban=self.db.get_global_ban(user_id),
            mute=self.db.get_active_global_mute(user_id),
        )


__all__ = ["GlobalModerationService"]
