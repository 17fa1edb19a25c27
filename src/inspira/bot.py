import logging
import discord
from discord import app_commands
from . import config, audio, VERSION
from .commands import MusicCommands, do_inspireme
from .logging_config import setup_logging
from .session import SessionStore


class InspiraCommandTree(app_commands.CommandTree):
    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        command = interaction.command
        logging.info(
            "Executing command: '%s' (guild=%s, user=%s)",
            command.qualified_name if command else "unknown",
            interaction.guild_id,
            interaction.user,
        )
        return True


class InspiraClient(discord.Client):
    def __init__(self) -> None:
        super().__init__(intents=discord.Intents.default())
        self.tree = InspiraCommandTree(self)
        self.sessions = SessionStore()
        self.commands_synced = False

    async def on_ready(self) -> None:
        logging.info("Logged in as %s (ID: %s), inspira %s", self.user, self.user.id, VERSION)
        if self.commands_synced:
            return
        try:
            if config.DISCORD_GUILD_ID:
                guild = discord.Object(id=int(config.DISCORD_GUILD_ID))
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                logging.info(
                    "Synced %d command(s) to Guild ID: %s", len(synced), config.DISCORD_GUILD_ID
                )
            else:
                synced = await self.tree.sync()
                logging.info("Synced %d command(s) globally.", len(synced))
                logging.warning(
                    "Global sync can take up to 1 hour to appear. Add DISCORD_GUILD_ID to .env for instant updates."
                )
            self.commands_synced = True
        except discord.DiscordException as e:
            logging.error("Failed to sync commands: %s", e)

    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState
    ) -> None:
        """Drops the guild's session when the bot is disconnected from voice."""
        if member.id != self.user.id:
            return

        if before.channel is None and after.channel is not None:
            logging.info("Voice: Connected to %s", after.channel.name)
        elif before.channel is not None and after.channel is None:
            logging.info("Voice: Disconnected from %s", before.channel.name)
            if await self.sessions.discard(member.guild.id, disconnect=False):
                logging.info("Dropped voice session for guild %s after disconnect", member.guild.id)
        elif before.channel != after.channel:
            logging.info("Voice: Moved from %s to %s", before.channel.name, after.channel.name)

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logging.info("Removed from guild %s", guild.id)
        await self.sessions.discard(guild.id)

    async def close(self) -> None:
        await self.sessions.close_all()
        await super().close()


def register_commands(client: InspiraClient, music: MusicCommands) -> None:
    tree = client.tree

    @tree.command(name="inspireme", description="Get an AI-generated inspirational image")
    async def inspireme(interaction: discord.Interaction) -> None:
        await do_inspireme(interaction)

    @tree.command(name="join", description="Join voice channel")
    async def join(interaction: discord.Interaction) -> None:
        await music.join(interaction)

    @tree.command(name="play", description="Plays specified song")
    @app_commands.describe(query="YouTube song name or URL")
    async def play(interaction: discord.Interaction, query: str) -> None:
        await music.play(interaction, query)

    @tree.command(name="current", description="Displays information about the currently played song")
    async def current(interaction: discord.Interaction) -> None:
        await music.current(interaction)

    @tree.command(name="skip", description="Skip the current song")
    async def skip(interaction: discord.Interaction) -> None:
        await music.skip(interaction)

    @tree.command(name="leave", description="Leave voice channel")
    async def leave(interaction: discord.Interaction) -> None:
        await music.leave(interaction)

    @tree.command(name="queue", description="Show the song queue")
    async def queue(interaction: discord.Interaction) -> None:
        await music.queue(interaction)


def main() -> None:
    setup_logging(config.LOG_LEVEL)

    if not config.DISCORD_TOKEN:
        raise ValueError("DISCORD_TOKEN is missing in .env")

    # Ensure opus is loaded before doing anything voice-related
    audio.load_opus_lib()
    logging.info("Launching Discord client")
    client = InspiraClient()
    register_commands(client, MusicCommands(client.sessions))

    # Root logging is already configured above
    client.run(config.DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
