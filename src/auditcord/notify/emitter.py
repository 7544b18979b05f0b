"""
Delivery of notifications to each guild's log channel through a webhook.

The webhook is looked up (or created) the first time a guild logs something
and cached per ``(guild, channel)``. A cached webhook that was deleted on the
Discord side is dropped and recreated once. Lookup and creation for a key run
under that key's ``asyncio.Lock`` so concurrent deliveries share one webhook.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple, Union

import discord

from auditcord.audit.differ import ChangeDescription
from auditcord.datatypes.logger_config import LoggerConfig
from auditcord.notify.notification import LogLevel, Notification
from auditcord.util.logger import get_logger

logger = get_logger("notification_emitter")

# Discord accepts at most ten embeds per message
MAX_EMBEDS_PER_MESSAGE = 10

WebhookKey = Tuple[int, int]


class NotificationEmitter:
    """Formats notifications and posts them to the configured log channel.

    Args:
        bot: The running bot, used to resolve channels.
        config_manager: Anything with ``get(guild_id) -> LoggerConfig``.
        webhook_name: Name given to webhooks this bot creates.
    """

    def __init__(self, bot: discord.Bot, config_manager, webhook_name: str) -> None:
        self.bot = bot
        self.config_manager = config_manager
        self.webhook_name = webhook_name
        self._webhooks: Dict[WebhookKey, discord.Webhook] = {}
        self._locks: Dict[WebhookKey, asyncio.Lock] = {}

    async def emit(
        self,
        guild_id: int,
        level: LogLevel,
        title: str,
        changes: Union[ChangeDescription, str, None] = None,
        actor_avatar_url: Optional[str] = None,
        attachments: Optional[Sequence[discord.File]] = None,
        footer: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> bool:
        """Build a single notification and deliver it.

        Returns:
            bool: False when the guild has no log channel configured.
        """
        description = changes.render() if isinstance(changes, ChangeDescription) else changes
        notification = Notification(
            level=level,
            author_name=title,
            author_icon_url=actor_avatar_url,
            description=description,
            footer=footer,
            image_url=image_url,
        )
        return await self.deliver(guild_id, [notification], files=attachments)

    async def deliver(
        self,
        guild_id: int,
        notifications: List[Notification],
        files: Optional[Sequence[discord.File]] = None,
        content: Optional[str] = None,
        ping_mod_role: bool = False,
    ) -> bool:
        """Send ``notifications`` to the guild's log channel.

        Raises:
            discord.HTTPException: if the channel or webhook can not be reached.
        """
        if not notifications:
            return False

        config: LoggerConfig = self.config_manager.get(guild_id)
        if config.log_channel_id is None:
            logger.debug("[EMITTER] Guild %s has no log channel, dropping notification", guild_id)
            return False

        allowed_mentions = discord.AllowedMentions.none()
        if ping_mod_role:
            if config.mod_role_id is not None:
                role_id = int(config.mod_role_id)
                content = f"<@&{role_id}>"
                allowed_mentions = discord.AllowedMentions(everyone=False, users=False, roles=[discord.Object(id=role_id)])
            else:
                logger.warning("[EMITTER] Guild %s asked to ping the moderator role but none is set", guild_id)

        batches = [
            notifications[i:i + MAX_EMBEDS_PER_MESSAGE]
            for i in range(0, len(notifications), MAX_EMBEDS_PER_MESSAGE)
        ]
        batch_files = _files_per_batch(batches, files or [])
        key = (int(guild_id), int(config.log_channel_id))

        for index, batch in enumerate(batches):
            kwargs = {"embeds": [notification.to_embed() for notification in batch], "allowed_mentions": allowed_mentions}
            if index == 0 and content:
                kwargs["content"] = content
            if batch_files[index]:
                kwargs["files"] = batch_files[index]
            await self._send(key, kwargs)

        return True

    async def _send(self, key: WebhookKey, kwargs: dict) -> None:
        webhook = await self._get_webhook(key)
        try:
            await webhook.send(**kwargs)
        except discord.NotFound:
            logger.info("[EMITTER] Webhook for channel %s disappeared, recreating it", key[1])
            for file in kwargs.get("files", []):
                file.reset()
            webhook = await self._get_webhook(key, stale=webhook)
            await webhook.send(**kwargs)

    def _lock_for(self, key: WebhookKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _get_webhook(self, key: WebhookKey, stale: Optional[discord.Webhook] = None) -> discord.Webhook:
        """Return the cached webhook for ``key``, looking it up or creating it under the key's lock.

        ``stale`` is a webhook that just failed; it is replaced unless another
        delivery already swapped in a new one.
        """
        async with self._lock_for(key):
            webhook = self._webhooks.get(key)
            if webhook is not None and webhook is not stale:
                return webhook
            self._webhooks.pop(key, None)

            channel_id = key[1]
            channel = self.bot.get_channel(channel_id) or await self.bot.fetch_channel(channel_id)
            own_id = self.bot.user.id if self.bot.user is not None else None

            existing = await channel.webhooks()
            webhook = next(
                (
                    hook for hook in existing
                    if hook is not stale and hook.user is not None and hook.user.id == own_id
                ),
                None,
            )
            if webhook is None:
                webhook = await channel.create_webhook(name=self.webhook_name)
                logger.info("[EMITTER] Created webhook %r in channel %s", self.webhook_name, channel_id)

            self._webhooks[key] = webhook
            return webhook

    def forget_guild(self, guild_id: int) -> None:
        guild_id = int(guild_id)
        for key in [key for key in self._webhooks if key[0] == guild_id]:
            del self._webhooks[key]
        for key in [key for key in self._locks if key[0] == guild_id and not self._locks[key].locked()]:
            del self._locks[key]


def _files_per_batch(batches: List[List[Notification]], files: Sequence[discord.File]) -> List[List[discord.File]]:
    """Attach each file to the batch whose embed shows it as ``attachment://<filename>``.

    Files no embed refers to travel with the first batch.
    """
    placed: List[List[discord.File]] = [[] for _ in batches]
    for file in files:
        reference = f"attachment://{file.filename}"
        index = next(
            (i for i, batch in enumerate(batches) if any(n.image_url == reference for n in batch)),
            0,
        )
        placed[index].append(file)
    return placed
