"""
Casekeeper - Platform Action Executor
=====================================

Contract for the component that applies bans, kicks and timeouts on the
chat platform, plus the discord.py implementation.

Return values:
    True  - the action was applied in that guild
    False - nothing to do there (user not a member, not banned)
    raise - the action failed
"""

from datetime import timedelta
from typing import List, Optional, Protocol

import discord

from casekeeper.core.logger import logger


# =============================================================================
# Executor Contract
# =============================================================================

class PlatformActionExecutor(Protocol):
    """Applies moderation actions in individual guilds."""

    def target_guild_ids(self) -> List[str]:
        """Guilds a global action should reach."""
        ...

    async def ban(self, guild_id: str, user_id: str, reason: str) -> bool:
        ...

    async def unban(self, guild_id: str, user_id: str, reason: str) -> bool:
        ...

    async def kick(self, guild_id: str, user_id: str, reason: str) -> bool:
        ...

    async def timeout(self, guild_id: str, user_id: str, seconds: int, reason: str) -> bool:
        ...

    async def is_banned(self, guild_id: str, user_id: str) -> bool:
        ...


# =============================================================================
# Discord Implementation
# =============================================================================

class DiscordActionExecutor:
    """
    PlatformActionExecutor backed by a connected discord.Client.

    Forbidden and HTTP errors propagate so the dispatcher can record them
    as failures for that guild.
    """

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    def target_guild_ids(self) -> List[str]:
        return [str(guild.id) for guild in self.client.guilds]

    def _guild(self, guild_id: str) -> discord.Guild:
        guild = self.client.get_guild(int(guild_id))
        if guild is None:
            raise LookupError(f"Guild {guild_id} is not available")
        return guild

    async def _member(self, guild: discord.Guild, user_id: str) -> Optional[discord.Member]:
        member = guild.get_member(int(user_id))
        if member is not None:
            return member
        try:
            return await guild.fetch_member(int(user_id))
        except discord.NotFound:
            return None

    async def ban(self, guild_id: str, user_id: str, reason: str) -> bool:
        guild = self._guild(guild_id)
        await guild.ban(discord.Object(id=int(user_id)), reason=reason, delete_message_seconds=0)
        return True

    async def unban(self, guild_id: str, user_id: str, reason: str) -> bool:
        guild = self._guild(guild_id)
        try:
            await guild.unban(discord.Object(id=int(user_id)), reason=reason)
        except discord.NotFound:
            return False
        return True

    async def kick(self, guild_id: str, user_id: str, reason: str) -> bool:
        guild = self._guild(guild_id)
        member = await self._member(guild, user_id)
        if member is None:
            return False
        await member.kick(reason=reason)
        return True

    async def timeout(self, guild_id: str, user_id: str, seconds: int, reason: str) -> bool:
        guild = self._guild(guild_id)
        member = await self._member(guild, user_id)
        if member is None:
            return False
        await member.timeout(timedelta(seconds=seconds), reason=reason)
        return True

    async def is_banned(self, guild_id: str, user_id: str) -> bool:
        guild = self._guild(guild_id)
        try:
            await guild.fetch_ban(discord.Object(id=int(user_id)))
        except discord.NotFound:
            return False
        except discord.Forbidden:
            logger.warning("Ban Lookup Forbidden", [
                ("Guild", guild_id),
                ("User", user_id),
            ])
            raise
        return True


__all__ = ["PlatformActionExecutor", "DiscordActionExecutor"]
