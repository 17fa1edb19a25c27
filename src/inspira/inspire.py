import asyncio
import logging
from typing import Optional

import aiohttp

from . import config

logger = logging.getLogger(__name__)


class InspireError(Exception):
    pass


def _client_timeout() -> aiohttp.ClientTimeout:
    return aiohttp.ClientTimeout(
        total=config.AIOHTTP_TOTAL_TIMEOUT_SEC,
        connect=config.AIOHTTP_CONNECT_TIMEOUT_SEC,
    )


async def generate_image_url(session: Optional[aiohttp.ClientSession] = None) -> str:
    """
    Asks inspirobot for a freshly generated poster.
    The API answers with the image URL as plain text.
    """
    if session is None:
        async with aiohttp.ClientSession(timeout=_client_timeout()) as own_session:
            return await _request_image_url(own_session)
    return await _request_image_url(session)


async def _request_image_url(session: aiohttp.ClientSession) -> str:
    url = config.INSPIROBOT_API_URL
    try:
        async with session.get(url) as response:
            if response.status != 200:
                raise InspireError(f"inspirobot returned HTTP {response.status}")
            body = (await response.text()).strip()
    except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
        logger.error("Error getting image from %s: %s", url, e)
        raise InspireError(f"Could not reach inspirobot: {e}") from e

    if not body.startswith(("http://", "https://")):
        raise InspireError(f"Unexpected inspirobot response: {body[:100]!r}")
    return body
