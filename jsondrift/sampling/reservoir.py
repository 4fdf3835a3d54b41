import random
from typing import Iterable, List, Optional, TypeVar

T = TypeVar("T")


def reservoir_sample(items: Iterable[T], k: int, rng: Optional[random.Random] = None) -> List[T]:
    """
    Uniformly pick k items from a stream of unknown length (Algorithm R).

    Holds at most k items in memory. Used by fetch layers that run a
    primary-key range scan and want a fixed-size uniform subset of it.

    Args:
        items: Any finite iterable (consumed once)
        k: Reservoir size, >= 0
        rng: Optional random.Random for reproducible draws

    Returns:
        Up to k items; all of them when the stream is shorter than k
    """
    if k < 0:
        raise ValueError(f"k must be >= 0, got {k}")

    rng = rng or random.Random()
    reservoir: List[T] = []

    for index, item in enumerate(items):
        if index < k:
            reservoir.append(item)
            continue
        slot = rng.randint(0, index)
        if slot < k:
            reservoir[slot] = item

    return reservoir
