"""Colors, teams and pawns"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Color(str, Enum):
    A = 'A'
    B = 'B'
    C = 'C'
    D = 'D'


# Fixed cyclic turn order
TURN_ORDER = (Color.A, Color.B, Color.C, Color.D)


class Team(str, Enum):
    AC = 'AC'
    BD = 'BD'

    @property
    def slot(self) -> int:
        """Index into a session's player list"""
        return 0 if self is Team.AC else 1

    @classmethod
    def for_color(cls, color: Color) -> 'Team':
        return cls.AC if color in (Color.A, Color.C) else cls.BD

    @classmethod
    def for_slot(cls, slot: int) -> 'Team':
        return cls.AC if slot == 0 else cls.BD


SPECTATOR = 'spectator'
DRAW = 'Draw'


class Posture(str, Enum):
    NEW = 'new'
    OLD = 'old'


@dataclass
class Pawn:
    color: Color
    posture: Posture = Posture.NEW
    prev_color: Optional[Color] = None
    converted_recently: bool = False

    def convert(self, color: Color) -> None:
        """Take over this pawn for `color`. Posture is left as it is."""
        self.prev_color = self.color
        self.color = color
        self.converted_recently = True

    def to_dict(self):
        return {
            'color': self.color.value,
            'posture': self.posture.value,
            'prevColor': self.prev_color.value if self.prev_color else None,
            'convertedRecently': self.converted_recently,
        }
