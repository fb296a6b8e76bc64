# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Coroutine tools.  The sibling ``requirements.txt`` lands in the manifest."""

from datetime import datetime
import uuid
from zoneinfo import ZoneInfo

import anyio
import httpx


JOKE_API = "https://official-joke-api.appspot.com/random_joke"


async def get_random_joke() -> str:
    """Fetch a random joke from an API"""
    async with httpx.AsyncClient(timeout=10.0) as client:
        response = await client.get(JOKE_API)
        response.raise_for_status()
        data = response.json()
    return f"{data['setup']}\n\n{data['punchline']}"


async def get_current_time(timezone: str) -> str:
    """Get the current time in a specified timezone

    @param timezone The timezone to get time for (e.g. "America/New_York")
    """
    return datetime.now(ZoneInfo(timezone)).strftime("%m/%d/%Y, %I:%M:%S %p")


async def delay(ms: int) -> str:
    """Delay execution for a specified number of milliseconds

    @param ms The number of milliseconds to delay
    """
    await anyio.sleep(ms / 1000)
    return f"Delayed for {ms}ms"


async def generate_uuid() -> str:
    """Generate a random UUID"""
    return str(uuid.uuid4())
