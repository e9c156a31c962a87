"""Example block providers: date/time, load average and memory usage.

A provider is a callable returning a Block, or None when it has nothing to
show this tick.
"""

import logging
import os
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from .models import Block

logger = logging.getLogger(__name__)

BlockProvider = Callable[[], Optional[Block]]

KIB_PER_GIB = 1024 * 1024


def _read_proc(name: str) -> Optional[str]:
    """Return the contents of /proc/<name>, or None if it cannot be read."""
    path = f"/proc/{name}"
    try:
        with open(path) as f:
            return f.read()
    except OSError as e:
        logger.warning(f"Cannot read {path}: {e}")
        return None


def read_loadavg() -> Optional[Tuple[float, float, float]]:
    """1, 5 and 15 minute load averages."""
    text = _read_proc("loadavg")
    if text is None:
        return None
    try:
        one, five, fifteen = (float(field) for field in text.split()[:3])
    except ValueError:
        logger.warning(f"Unexpected /proc/loadavg contents: {text!r}")
        return None
    return one, five, fifteen


def read_meminfo() -> Dict[str, int]:
    """Fields of /proc/meminfo in KiB, keyed by name (empty if unreadable)."""
    text = _read_proc("meminfo")
    fields: Dict[str, int] = {}
    for line in (text or "").splitlines():
        key, _, rest = line.partition(":")
        value = rest.split()
        if value and value[0].isdigit():
            fields[key.strip()] = int(value[0])
    return fields


def create_datetime_block() -> Block:
    """Create date/time status block."""
    now = datetime.now()
    return Block(
        name="datetime",
        full_text=now.strftime("%a %b %d  %H:%M:%S"),
        short_text=now.strftime("%H:%M"),
        color="#cdd6f4",  # Text
        separator_block_width=10
    )


def create_load_block() -> Optional[Block]:
    """Create load average status block; urgent when load exceeds the CPU count."""
    loads = read_loadavg()
    if loads is None:
        return None

    one = loads[0]
    return Block(
        name="load",
        full_text=f"load {one:.2f}",
        color="#89b4fa",  # Blue
        urgent=one > (os.cpu_count() or 1),
        separator_block_width=10
    )


def create_memory_block() -> Optional[Block]:
    """Create memory usage status block from MemTotal and MemAvailable."""
    meminfo = read_meminfo()
    total = meminfo.get("MemTotal")
    if not total:
        return None

    used = total - meminfo.get("MemAvailable", meminfo.get("MemFree", 0))
    percent = used * 100 // total

    return Block(
        name="memory",
        full_text=f"mem {used / KIB_PER_GIB:.1f}G/{percent}%",
        short_text=f"{percent}%",
        color="#f38ba8" if percent >= 90 else "#74c7ec",  # Red / Sapphire
        separator_block_width=10
    )


PROVIDERS: Dict[str, BlockProvider] = {
    "datetime": create_datetime_block,
    "load": create_load_block,
    "memory": create_memory_block,
}
