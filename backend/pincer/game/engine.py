"""Rules for a single game: placement legality, pincer capture and win detection.

The engine knows colors only. Which player owns which color, and whether
that player may act right now, is the room manager's business.
"""

from collections import deque
from typing import Dict, Iterable, List, Optional, Union

from pincer.errors import InvalidMove
from pincer.game.board import (
    DEFAULT_BOARD_SIZE,
    DIRECTIONS,
    Coord,
    Zone,
    chebyshev,
    corner_anchor,
    in_bounds,
    neighbors,
    zone_of,
)
from pincer.game.pieces import DRAW, TURN_ORDER, Color, Pawn, Posture

# Minimum Chebyshev distance between the two placements of one turn
MIN_PLACEMENT_SPREAD = 3

Winner = Union[Color, str]


class GameEngine:
    def __init__(self, size: int = DEFAULT_BOARD_SIZE):
        self.size = size
        self.grid: List[List[Optional[Pawn]]] = [[None] * size for _ in range(size)]
        self.turn_index = 0
        # The opening turn of a match has a single placement
        self.placements_left = 1
        self.first_pawn_loc: Optional[Coord] = None
        self.winner: Optional[Winner] = None
        self.winning_path: Optional[List[Coord]] = None

    @property
    def current_color(self) -> Color:
        return TURN_ORDER[self.turn_index]

    @property
    def is_decided(self) -> bool:
        return self.winner is not None

    @property
    def winner_label(self) -> Optional[str]:
        """Winning color letter, `Draw`, or None while undecided."""
        return self.winner.value if isinstance(self.winner, Color) else self.winner

    def pawn_at(self, r: int, c: int) -> Optional[Pawn]:
        return self.grid[r][c]

    def zone(self, r: int, c: int) -> Zone:
        return zone_of(self.size, r, c)

    # -- placement legality --
    def is_valid_placement(self, r: int, c: int) -> bool:
        if self.winner is not None:
            return False
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in (r, c)):
            return False
        if not in_bounds(self.size, r, c):
            return False
        if self.grid[r][c] is not None:
            return False
        if self.first_pawn_loc is not None and chebyshev(self.first_pawn_loc, (r, c)) < MIN_PLACEMENT_SPREAD:
            return False

        zone = self.zone(r, c)
        if zone == Zone.INTERIOR:
            return True
        if zone == Zone.PREBORDER:
            return self._has_occupied_neighbor(r, c, Zone.INTERIOR)
        if zone == Zone.BORDER:
            return self._has_occupied_neighbor(r, c, Zone.PREBORDER)
        ar, ac = corner_anchor(r, c)
        return self.grid[ar][ac] is not None

    def _has_occupied_neighbor(self, r: int, c: int, zone: Zone) -> bool:
        return any(
            self.grid[nr][nc] is not None and self.zone(nr, nc) == zone
            for nr, nc in neighbors(self.size, r, c)
        )

    def has_any_valid_placement(self) -> bool:
        return any(
            self.is_valid_placement(r, c)
            for r in range(self.size)
            for c in range(self.size)
        )

    # -- turn flow --
    def place_pawn(self, r: int, c: int) -> List[Coord]:
        """Place a pawn of the active color at (r, c).

        Returns the coordinates converted by this placement. Raises
        `InvalidMove` without touching the board if the placement is illegal.
        """
        if not self.is_valid_placement(r, c):
            raise InvalidMove()

        self._clear_conversion_flags()
        color = self.current_color
        self.grid[r][c] = Pawn(color, Posture.NEW)
        converted = self._convert_from(r, c, color)

        path = self.check_win(color)
        if path is not None:
            self.winner = color
            self.winning_path = path
            return converted

        self.placements_left -= 1
        if self.placements_left == 0:
            self.end_turn()
        else:
            self.first_pawn_loc = (r, c)
            # Second placement may be impossible; forfeit it
            if not self.has_any_valid_placement():
                self.end_turn()
        return converted

    def end_turn(self) -> None:
        self.turn_index = (self.turn_index + 1) % len(TURN_ORDER)
        active = self.current_color
        # Immunity lasts until the owner's own next turn
        for pawn in self._pawns():
            if pawn.color == active and pawn.posture == Posture.NEW:
                pawn.posture = Posture.OLD
        self.placements_left = 2
        self.first_pawn_loc = None
        if not self.has_any_valid_placement():
            self.winner = DRAW

    # -- capture --
    def _convert_from(self, r: int, c: int, color: Color) -> List[Coord]:
        converted: List[Coord] = []
        for dr, dc in DIRECTIONS:
            line = self._pincered_line(r, c, dr, dc, color)
            for lr, lc in line:
                self.grid[lr][lc].convert(color)
            converted.extend(line)
        return converted

    def _pincered_line(self, r: int, c: int, dr: int, dc: int, color: Color) -> List[Coord]:
        """Enemy cells bracketed between (r, c) and the next `color` pawn along (dr, dc)."""
        line: List[Coord] = []
        line_color: Optional[Color] = None
        cr, cc = r + dr, c + dc
        while in_bounds(self.size, cr, cc):
            pawn = self.grid[cr][cc]
            if pawn is None:
                return []
            if pawn.color == color:
                return line
            if pawn.posture == Posture.NEW:
                return []
            if line_color is None:
                line_color = pawn.color
            elif pawn.color != line_color:
                return []
            line.append((cr, cc))
            cr, cc = cr + dr, cc + dc
        return []

    def _clear_conversion_flags(self) -> None:
        for pawn in self._pawns():
            pawn.converted_recently = False

    def _pawns(self) -> Iterable[Pawn]:
        for row in self.grid:
            for pawn in row:
                if pawn is not None:
                    yield pawn

    # -- win detection --
    def check_win(self, color: Color) -> Optional[List[Coord]]:
        """Return a corner-free path of `color` joining opposite edges, or None.

        Top to bottom is tried before left to right.
        """
        inner = range(1, self.size - 1)
        last = self.size - 1

        top = [(0, c) for c in inner if self._owned_by(0, c, color)]
        path = self._connect(top, color, lambda cell: cell[0] == last)
        if path is not None:
            return path

        left = [(r, 0) for r in inner if self._owned_by(r, 0, color)]
        return self._connect(left, color, lambda cell: cell[1] == last)

    def _owned_by(self, r: int, c: int, color: Color) -> bool:
        pawn = self.grid[r][c]
        return pawn is not None and pawn.color == color

    def _connect(self, starts: List[Coord], color: Color, reached) -> Optional[List[Coord]]:
        parents: Dict[Coord, Optional[Coord]] = {cell: None for cell in starts}
        queue = deque(starts)
        while queue:
            cell = queue.popleft()
            if reached(cell):
                path = []
                step: Optional[Coord] = cell
                while step is not None:
                    path.append(step)
                    step = parents[step]
                path.reverse()
                return path
            for nxt in neighbors(self.size, *cell):
                if nxt in parents or self.zone(*nxt) == Zone.CORNER:
                    continue
                if self._owned_by(nxt[0], nxt[1], color):
                    parents[nxt] = cell
                    queue.append(nxt)
        return None

    # -- serialization --
    def to_dict(self):
        return {
            'size': self.size,
            'grid': [[pawn.to_dict() if pawn else None for pawn in row] for row in self.grid],
            'turnIndex': self.turn_index,
            'currentColor': self.current_color.value,
            'placementsLeft': self.placements_left,
            'firstPawnLoc': (
                {'r': self.first_pawn_loc[0], 'c': self.first_pawn_loc[1]}
                if self.first_pawn_loc else None
            ),
            'winner': self.winner_label,
            'winningPath': (
                [{'r': r, 'c': c} for r, c in self.winning_path]
                if self.winning_path else None
            ),
        }
