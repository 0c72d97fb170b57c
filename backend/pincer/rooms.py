import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Set

from pincer.errors import InvalidIdentity, NotYourTurn, RoomNotFound
from pincer.game.board import ALLOWED_BOARD_SIZES, DEFAULT_BOARD_SIZE
from pincer.game.engine import GameEngine
from pincer.game.pieces import SPECTATOR, Team

# No 0/O or 1/I, codes are read aloud and typed by hand
ROOM_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
# Odd, hence coprime to the alphabet size: every code comes up once per cycle
_CODE_STRIDE = 1_000_003


def room_codes(length: int = 6, start: int = 1) -> Iterator[str]:
    """Deterministic stream of short room codes that do not look sequential."""
    base = len(ROOM_CODE_ALPHABET)
    space = base ** length
    for n in itertools.count(start):
        value = (n * _CODE_STRIDE) % space
        chars = []
        for _ in range(length):
            value, idx = divmod(value, base)
            chars.append(ROOM_CODE_ALPHABET[idx])
        yield ''.join(chars)


def normalize_room_id(room_id) -> str:
    return str(room_id or '').strip().upper()


def parse_board_size(requested, allowed=ALLOWED_BOARD_SIZES, default=DEFAULT_BOARD_SIZE) -> int:
    try:
        size = int(requested)
    except (TypeError, ValueError):
        return default
    return size if size in allowed else default


class PendingDeletion:
    """Handle for one scheduled room deletion."""

    def __init__(self, deadline: float):
        self.deadline = deadline
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class Session:
    room_id: str
    engine: GameEngine
    players: List[str] = field(default_factory=list)
    spectators: Set[str] = field(default_factory=set)
    # Socket ids currently in the room's broadcast group
    connections: Set[str] = field(default_factory=set)
    pending_deletion: Optional[PendingDeletion] = None

    @property
    def is_full(self) -> bool:
        return len(self.players) >= 2

    def team_of(self, player_id: str) -> Optional[Team]:
        if player_id in self.players:
            return Team.for_slot(self.players.index(player_id))
        return None

    def player_for(self, team: Team) -> Optional[str]:
        if team.slot < len(self.players):
            return self.players[team.slot]
        return None

    def cancel_deletion(self) -> bool:
        if self.pending_deletion is None:
            return False
        self.pending_deletion.cancel()
        self.pending_deletion = None
        return True


@dataclass
class JoinResult:
    session: Session
    team: str
    state: Dict[str, Any]
    # Both seats taken and the game still open
    activated: bool


@dataclass
class MoveOutcome:
    session: Session
    decided: bool
    state: Dict[str, Any]


def _start_thread(fn, *args):
    worker = threading.Thread(target=fn, args=args, daemon=True)
    worker.start()
    return worker


class RoomManager:
    """Registry of live rooms and everything that mutates them.

    Every public method takes the manager lock, so socket handlers running
    on different threads and the cleanup timers never interleave inside a
    room mutation. Callers get sessions back but should treat them as
    read-only snapshots outside the manager.
    """

    def __init__(
        self,
        grace_period: float = 10.0,
        default_size: int = DEFAULT_BOARD_SIZE,
        allowed_sizes=ALLOWED_BOARD_SIZES,
        code_length: int = 6,
        codes: Optional[Iterator[str]] = None,
        start_background_task: Callable = _start_thread,
        sleep: Callable[[float], None] = time.sleep,
        on_room_deleted: Optional[Callable[[str], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.grace_period = grace_period
        self.default_size = default_size
        self.allowed_sizes = tuple(allowed_sizes)
        self._codes = codes if codes is not None else room_codes(code_length)
        self._start_background_task = start_background_task
        self._sleep = sleep
        self.on_room_deleted = on_room_deleted
        self.logger = logger or logging.getLogger(__name__)

        self._lock = threading.RLock()
        self._rooms: Dict[str, Session] = {}
        self._connections: Dict[str, str] = {}

    # ---- connection admission ----
    def connect(self, sid: str, token) -> str:
        if not token or not isinstance(token, str):
            raise InvalidIdentity()
        with self._lock:
            self._connections[sid] = token
        self.logger.info(f"[connect] player={token} sid={sid}")
        return token

    def player_id(self, sid: str) -> str:
        with self._lock:
            player = self._connections.get(sid)
        if player is None:
            raise InvalidIdentity()
        return player

    # ---- queries ----
    def get(self, room_id) -> Session:
        with self._lock:
            session = self._rooms.get(normalize_room_id(room_id))
        if session is None:
            raise RoomNotFound()
        return session

    def snapshot(self, view: Callable[[List[Session]], Any]) -> Any:
        """Run `view` over the live sessions while holding the lock."""
        with self._lock:
            return view(list(self._rooms.values()))

    def state_of(self, session: Session) -> Dict[str, Any]:
        with self._lock:
            return session.engine.to_dict()

    # ---- room lifecycle ----
    def create_game(self, sid: str, requested_size=None) -> Session:
        player = self.player_id(sid)
        size = parse_board_size(requested_size, self.allowed_sizes, self.default_size)
        with self._lock:
            room_id = self._allocate_room_id()
            session = Session(room_id=room_id, engine=GameEngine(size), players=[player])
            session.connections.add(sid)
            self._rooms[room_id] = session
        self.logger.info(f"[room-created] room={room_id} size={size} player={player}")
        return session

    def _allocate_room_id(self) -> str:
        for code in self._codes:
            code = normalize_room_id(code)
            if code and code not in self._rooms:
                return code
        raise RuntimeError('room code source exhausted')

    def join_game(self, sid: str, room_id) -> JoinResult:
        player = self.player_id(sid)
        room_id = normalize_room_id(room_id)
        with self._lock:
            session = self._rooms.get(room_id)
            if session is None:
                raise RoomNotFound()
            if session.cancel_deletion():
                self.logger.info(f"[cleanup-cancel] room={room_id}")

            team = session.team_of(player)
            if team is not None:
                self.logger.info(f"[room-reconnect] room={room_id} player={player} team={team.value}")
            elif not session.is_full:
                session.players.append(player)
                team = Team.BD
                self.logger.info(f"[room-joined] room={room_id} player={player} team={team.value}")
            else:
                session.spectators.add(player)
                self.logger.info(f"[room-spectate] room={room_id} player={player}")

            session.connections.add(sid)
            activated = session.is_full and not session.engine.is_decided
            state = session.engine.to_dict()
        return JoinResult(session, team.value if team else SPECTATOR, state, activated)

    def leave_game(self, sid: str, room_id) -> None:
        room_id = normalize_room_id(room_id)
        with self._lock:
            session = self._rooms.get(room_id)
            if session is not None:
                session.connections.discard(sid)
        self.logger.info(f"[room-left] room={room_id} sid={sid}")

    def submit_move(self, sid: str, room_id, r: int, c: int) -> Optional[MoveOutcome]:
        """Play one placement for the caller.

        Returns None for an unknown or already decided room. Raises
        `NotYourTurn` when the caller does not hold the active color's seat,
        and `InvalidMove` when the rules reject the placement.
        """
        player = self.player_id(sid)
        with self._lock:
            session = self._rooms.get(normalize_room_id(room_id))
            if session is None or session.engine.is_decided:
                return None
            engine = session.engine
            color = engine.current_color
            if player != session.player_for(Team.for_color(color)):
                raise NotYourTurn()

            converted = engine.place_pawn(r, c)
            decided = engine.is_decided
            state = engine.to_dict()
        self.logger.info(
            f"[move] room={session.room_id} color={color.value} at=({r},{c}) converted={len(converted)}"
        )
        if decided:
            self.logger.info(f"[game-over] room={session.room_id} winner={engine.winner_label}")
        return MoveOutcome(session, decided, state)

    def handle_disconnect(self, sid: str) -> List[str]:
        """Forget a connection and schedule cleanup of rooms left empty.

        Returns the ids of rooms whose deletion was scheduled by this call.
        """
        scheduled = []
        with self._lock:
            player = self._connections.pop(sid, None)
            for session in self._rooms.values():
                session.connections.discard(sid)
                if player is not None:
                    session.spectators.discard(player)
                if session.connections:
                    continue
                if session.pending_deletion is not None:
                    self.logger.info(f"[cleanup-skip] room={session.room_id} already scheduled")
                    continue
                session.pending_deletion = PendingDeletion(time.time() + self.grace_period)
                scheduled.append((session.room_id, session.pending_deletion))
        self.logger.info(f"[disconnect] player={player} sid={sid}")

        for room_id, handle in scheduled:
            self.logger.info(
                f"[cleanup-set] room={room_id} grace={self.grace_period}s deadline={handle.deadline}"
            )
            self._start_background_task(self._expire_room, room_id, handle)
        return [room_id for room_id, _ in scheduled]

    def _expire_room(self, room_id: str, handle: PendingDeletion) -> None:
        self._sleep(self.grace_period)
        with self._lock:
            session = self._rooms.get(room_id)
            if session is None or session.pending_deletion is not handle or handle.cancelled:
                self.logger.info(f"[cleanup-abort] room={room_id} handle no longer current")
                return
            session.pending_deletion = None
            if session.connections:
                self.logger.info(f"[cleanup-abort] room={room_id} reconnected")
                return
            del self._rooms[room_id]
        self.logger.info(f"[room-deleted] room={room_id} deleted due to inactivity")
        if self.on_room_deleted is not None:
            self.on_room_deleted(room_id)
