# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""File system tools plus subscribable system resources.

``cwd`` re-announces itself every second through a generator, ``system_time``
through a poll function that completes once per second, and ``numbers`` is a
templated resource that lists ten concrete URIs and announces
``sys://numbers/N`` every N seconds.

Serve it over Streamable HTTP::

    docmcp examples/file_ops/file_ops.py -o build/file-ops
    python build/file-ops/server.py --port 3000
"""

from datetime import datetime, timezone
import os
from pathlib import Path
from typing import TypedDict

import anyio


class FileStats(TypedDict):
    size: int
    is_directory: bool
    modified: str


async def read_file_contents(path: str) -> str:
    """Read the contents of a file

    @param path The path to the file to read
    """
    return await anyio.Path(path).read_text(encoding="utf-8")


async def write_file_contents(path: str, content: str) -> str:
    """Write content to a file

    @param path The path to the file to write
    @param content The content to write to the file
    """
    await anyio.Path(path).write_text(content, encoding="utf-8")
    return f"Successfully wrote to {path}"


def list_directory(dir_path: str) -> list[str]:
    """List files in a directory

    @param dir_path The path to the directory to list
    """
    return sorted(entry.name for entry in Path(dir_path).iterdir())


def get_file_stats(path: str) -> FileStats:
    """Get file statistics including size and modification time

    @param path The path to the file
    """
    stats = Path(path).stat()
    return {
        "size": stats.st_size,
        "is_directory": Path(path).is_dir(),
        "modified": datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc).isoformat(),
    }


def count_lines(path: str) -> int:
    """Count lines in a text file

    @param path The path to the file
    """
    return len(Path(path).read_text(encoding="utf-8").split("\n"))


def cwd() -> str:
    """Get the current working directory

    @uri sys://cwd
    @mimeType "text/plain"
    """
    return os.getcwd()


async def _every_second():
    while True:
        await anyio.sleep(1)
        yield None


cwd.subscribe = _every_second


def system_time() -> dict[str, str]:
    """Current system time

    @uri sys://time
    """
    return {"mimeType": "text/plain", "text": datetime.now(timezone.utc).isoformat()}


async def _next_second() -> None:
    await anyio.sleep(1)


system_time.subscribe = _next_second


def numbers(number: int) -> str:
    """All the numbers

    @param number Which number you want to return
    @uri sys://numbers/{number}
    @mimeType text/plain
    """
    return f"Your number is {number}"


numbers.list = lambda: [f"sys://numbers/{index}" for index in range(1, 11)]


async def _number_ticks(number: str):
    while True:
        await anyio.sleep(int(number))
        yield number


numbers.subscribe = _number_ticks
