import math
from typing import List

from .models import ChunkWindow


def plan_chunks(total_duration: float, chunk_duration: float = 600) -> List[ChunkWindow]:
    """
    Splits [0, total_duration) into consecutive fixed-length windows.

    ceil(total / chunk) windows; every window but the last is exactly
    chunk_duration long, the last one covers whatever remains.

    >>> [(c.offset, c.duration) for c in plan_chunks(1500, 600)]
    [(0, 600), (600, 600), (1200, 300)]
    """
    if chunk_duration <= 0:
        raise ValueError(f"Chunk duration must be positive, got {chunk_duration}")
    if total_duration <= 0:
        raise ValueError(f"Cannot chunk audio with duration {total_duration}")

    count = math.ceil(total_duration / chunk_duration)
    windows = []
    for i in range(count):
        offset = i * chunk_duration
        is_last = i == count - 1
        windows.append(ChunkWindow(
            index=i,
            offset=offset,
            duration=(total_duration - offset) if is_last else chunk_duration,
            is_last=is_last
        ))
    return windows
