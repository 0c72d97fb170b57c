"""Game rules: board geometry, pawns and the per-game engine.

This package is pure domain logic imported by the room manager, keeping
transport concerns separated from core game mechanics.
"""

from pincer.game.engine import GameEngine
from pincer.game.pieces import DRAW, SPECTATOR, Color, Pawn, Posture, Team

__all__ = ['GameEngine', 'Color', 'Team', 'Posture', 'Pawn', 'DRAW', 'SPECTATOR']
