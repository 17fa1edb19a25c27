import os
from dotenv import load_dotenv

load_dotenv()

# Discord configuration
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
DISCORD_GUILD_ID = os.getenv("DISCORD_GUILD_ID")

# Inspirobot image generator
INSPIROBOT_API_URL = os.getenv("INSPIROBOT_API_URL", "https://inspirobot.me/api?generate=true")

# HTTP timeout configuration (seconds)
AIOHTTP_TOTAL_TIMEOUT_SEC = float(os.getenv("AIOHTTP_TOTAL_TIMEOUT_SEC", "60.0"))
AIOHTTP_CONNECT_TIMEOUT_SEC = float(os.getenv("AIOHTTP_CONNECT_TIMEOUT_SEC", "10.0"))

# Logging level name (DEBUG, INFO, WARNING, ...)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
