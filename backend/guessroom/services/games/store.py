"""Room store: every database read and write the game services make.

The store is constructed with an explicit session (``db.session`` in the app)
and an optional change feed. Writes commit immediately and then publish a
change event. Any ``SQLAlchemyError`` rolls the session back and is re-raised
as ``StorageError``.
"""

from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from guessroom.models import Room, Player, GameRound, Guess, FINISHED, PLAYING, utcnow
from .errors import DuplicateGuess, StorageError
from .feed import INSERT, UPDATE


class RoomStore:
    def __init__(self, session, feed=None):
        self.session = session
        self.feed = feed

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f'{action} failed: {exc}') from exc

    def _publish(self, table: str, event: str, record: dict) -> None:
        if self.feed is not None:
            self.feed.publish(table, event, record)

    def _insert(self, obj, action: str):
        with self._guard(action):
            self.session.add(obj)
            self.session.commit()
            record = obj.to_dict()
        self._publish(obj.__tablename__, INSERT, record)
        return obj

    # ---- rooms ----

    def create_room(self, code: str, total_rounds: int, round_time: int) -> Room:
        room = Room(code=code, total_rounds=total_rounds, round_time=round_time)
        return self._insert(room, 'create room')

    def get_room(self, room_id: int) -> Optional[Room]:
        with self._guard('get room'):
            return self.session.get(Room, room_id)

    def find_room_by_code(self, code: str) -> Optional[Room]:
        with self._guard('find room'):
            return self.session.query(Room).filter_by(code=code).first()

    def update_room(self, room_id: int, **fields) -> Room:
        with self._guard('update room'):
            room = self.session.get(Room, room_id)
            if room is None:
                raise StorageError(f'room {room_id} not found')
            for key, value in fields.items():
                setattr(room, key, value)
            self.session.commit()
            record = room.to_dict()
        self._publish('rooms', UPDATE, record)
        return room

    def advance_room(self, room_id: int, from_round: int, to_round: int) -> bool:
        """Move a room to ``to_round`` only if it is still on ``from_round``."""
        with self._guard('advance room'):
            updated = (
                self.session.query(Room)
                .filter(Room.id == room_id, Room.current_round == from_round, Room.status != FINISHED)
                .update({Room.current_round: to_round, Room.status: PLAYING, Room.updated_at: utcnow()},
                        synchronize_session=False)
            )
            self.session.commit()
        if updated:
            self._publish('rooms', UPDATE, self.get_room(room_id).to_dict())
        return bool(updated)

    def claim_host(self, room_id: int, player_id: int) -> bool:
        """Set ``created_by`` unless another player already holds it."""
        with self._guard('claim host'):
            updated = (
                self.session.query(Room)
                .filter(Room.id == room_id, Room.created_by.is_(None))
                .update({Room.created_by: player_id, Room.updated_at: utcnow()}, synchronize_session=False)
            )
            self.session.commit()
        if updated:
            self._publish('rooms', UPDATE, self.get_room(room_id).to_dict())
        return bool(updated)

    # ---- players ----

    def add_player(self, room_id: int, name: str, avatar_seed: str) -> Player:
        player = Player(room_id=room_id, name=name, avatar_seed=avatar_seed, score=0)
        return self._insert(player, 'add player')

    def get_player(self, player_id: int) -> Optional[Player]:
        with self._guard('get player'):
            return self.session.get(Player, player_id)

    def list_players(self, room_id: int) -> List[Player]:
        with self._guard('list players'):
            return (
                self.session.query(Player).filter_by(room_id=room_id)
                .order_by(Player.score.desc(), Player.id.asc())
                .all()
            )

    def count_players(self, room_id: int) -> int:
        with self._guard('count players'):
            return self.session.query(Player).filter_by(room_id=room_id).count()

    def add_score(self, player_id: int, delta: int) -> Player:
        """Atomically add ``delta`` to a player's score."""
        with self._guard('add score'):
            updated = (
                self.session.query(Player).filter_by(id=player_id)
                .update({Player.score: Player.score + delta}, synchronize_session=False)
            )
            self.session.commit()
        if not updated:
            raise StorageError(f'player {player_id} not found')
        player = self.get_player(player_id)
        self._publish('players', UPDATE, player.to_dict())
        return player

    # ---- rounds ----

    def create_round(self, room_id: int, round_number: int, definition) -> GameRound:
        round_ = GameRound(
            room_id=room_id,
            round_number=round_number,
            word=definition.word,
            definition=definition.definition,
            hint1=definition.hint1,
            hint2=definition.hint2,
            start_time=utcnow(),
        )
        return self._insert(round_, 'create round')

    def get_round(self, round_id: int) -> Optional[GameRound]:
        with self._guard('get round'):
            return self.session.get(GameRound, round_id)

    def find_round(self, room_id: int, round_number: int) -> Optional[GameRound]:
        with self._guard('find round'):
            return self.session.query(GameRound).filter_by(room_id=room_id, round_number=round_number).first()

    def close_round(self, round_id: int) -> bool:
        """Stamp ``end_time`` if the round is still open."""
        with self._guard('close round'):
            updated = (
                self.session.query(GameRound)
                .filter(GameRound.id == round_id, GameRound.end_time.is_(None))
                .update({GameRound.end_time: utcnow()}, synchronize_session=False)
            )
            self.session.commit()
        if updated:
            self._publish('game_rounds', UPDATE, self.get_round(round_id).to_dict())
        return bool(updated)

    # ---- guesses ----

    def find_guess(self, round_id: int, player_id: int) -> Optional[Guess]:
        with self._guard('find guess'):
            return self.session.query(Guess).filter_by(round_id=round_id, player_id=player_id).first()

    def add_guess(self, round_id: int, player_id: int, text: str, is_correct: bool, points: int) -> Guess:
        guess = Guess(round_id=round_id, player_id=player_id, guess=text, is_correct=is_correct, points=points)
        try:
            return self._insert(guess, 'add guess')
        except StorageError as exc:
            # only the (round, player) unique constraint means a duplicate
            if isinstance(exc.__cause__, IntegrityError) and self.find_guess(round_id, player_id) is not None:
                raise DuplicateGuess(f'player {player_id} already guessed in round {round_id}') from exc.__cause__
            raise

    def list_guesses(self, round_id: int) -> List[Guess]:
        with self._guard('list guesses'):
            return self.session.query(Guess).filter_by(round_id=round_id).order_by(Guess.id.asc()).all()
