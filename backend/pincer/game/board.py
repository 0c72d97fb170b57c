"""Board geometry: zones, directions and distances for a square board of side N.

Nothing here looks at pawns; a zone is a pure function of a coordinate and
the board size, so it never changes over the life of a game.
"""

from enum import IntEnum
from typing import Iterator, Tuple

Coord = Tuple[int, int]

DEFAULT_BOARD_SIZE = 13
ALLOWED_BOARD_SIZES = (9, 11, 13, 15)

# Fixed iteration order, shared by capture and win search
DIRECTIONS = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
)


class Zone(IntEnum):
    INTERIOR = 0
    PREBORDER = 1
    BORDER = 2
    CORNER = 3


def in_bounds(size: int, r: int, c: int) -> bool:
    return 0 <= r < size and 0 <= c < size


def zone_of(size: int, r: int, c: int) -> Zone:
    last = size - 1
    if r in (0, last) and c in (0, last):
        return Zone.CORNER
    if r in (0, last) or c in (0, last):
        return Zone.BORDER
    if r in (1, last - 1) or c in (1, last - 1):
        return Zone.PREBORDER
    return Zone.INTERIOR


def neighbors(size: int, r: int, c: int) -> Iterator[Coord]:
    """All in-bounds cells around (r, c), in `DIRECTIONS` order."""
    for dr, dc in DIRECTIONS:
        nr, nc = r + dr, c + dc
        if in_bounds(size, nr, nc):
            yield nr, nc


def corner_anchor(r: int, c: int) -> Coord:
    """The single diagonal neighbor of a corner, one step toward the center."""
    return r + (1 if r == 0 else -1), c + (1 if c == 0 else -1)


def chebyshev(a: Coord, b: Coord) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))
