from guessroom import db
from datetime import datetime, timezone
import string
import random

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits

WAITING = 'waiting'
PLAYING = 'playing'
ROUND_END = 'round_end'
FINISHED = 'finished'
ROOM_STATUSES = (WAITING, PLAYING, ROUND_END, FINISHED)


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(value):
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _isoformat(value):
    value = as_utc(value)
    return value.isoformat() if value else None


def generate_room_code(length=ROOM_CODE_LENGTH):
    """Generate a short, shareable base-36 room code."""
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))


def generate_avatar_seed(length=8):
    return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))


class Room(db.Model):
    __tablename__ = 'rooms'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(ROOM_CODE_LENGTH), unique=True, nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=WAITING)  # waiting, playing, round_end, finished
    current_round = db.Column(db.Integer, nullable=False, default=1)
    total_rounds = db.Column(db.Integer, nullable=False, default=5)
    round_time = db.Column(db.Integer, nullable=False, default=60)
    created_by = db.Column(
        db.Integer,
        db.ForeignKey('players.id', name='fk_rooms_created_by', use_alter=True),
        nullable=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    players = db.relationship('Player', foreign_keys='Player.room_id', back_populates='room')
    rounds = db.relationship('GameRound', back_populates='room', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'status': self.status,
            'current_round': self.current_round,
            'total_rounds': self.total_rounds,
            'round_time': self.round_time,
            'created_by': self.created_by,
            'created_at': _isoformat(self.created_at),
            'updated_at': _isoformat(self.updated_at),
        }


class Player(db.Model):
    __tablename__ = 'players'
    __table_args__ = (
        db.CheckConstraint('score >= 0', name='ck_players_score_non_negative'),
    )
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id'), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    avatar_seed = db.Column(db.String(32), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    room = db.relationship('Room', foreign_keys=[room_id], back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'room_id': self.room_id,
            'name': self.name,
            'avatar_seed': self.avatar_seed,
            'score': self.score,
            'created_at': _isoformat(self.created_at),
        }


class GameRound(db.Model):
    __tablename__ = 'game_rounds'
    __table_args__ = (
        db.UniqueConstraint('room_id', 'round_number', name='uq_game_rounds_room_number'),
    )
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id'), nullable=False, index=True)
    round_number = db.Column(db.Integer, nullable=False)
    word = db.Column(db.String(64), nullable=False)
    definition = db.Column(db.Text, nullable=False)
    hint1 = db.Column(db.String(255), nullable=False)
    hint2 = db.Column(db.String(255), nullable=False)
    start_time = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)
    room = db.relationship('Room', back_populates='rounds')
    guesses = db.relationship('Guess', backref='round', lazy='dynamic')

    @property
    def is_over(self):
        return self.end_time is not None

    def to_dict(self, reveal_word=None):
        """Serialize the round; the word and both hints stay hidden until it is over."""
        if reveal_word is None:
            reveal_word = self.is_over
        return {
            'id': self.id,
            'room_id': self.room_id,
            'round_number': self.round_number,
            'word': self.word if reveal_word else None,
            'word_length': len(self.word),
            'definition': self.definition,
            'hint1': self.hint1 if self.is_over else None,
            'hint2': self.hint2 if self.is_over else None,
            'start_time': _isoformat(self.start_time),
            'end_time': _isoformat(self.end_time),
        }


class Guess(db.Model):
    __tablename__ = 'guesses'
    __table_args__ = (
        db.UniqueConstraint('round_id', 'player_id', name='uq_guesses_round_player'),
    )
    id = db.Column(db.Integer, primary_key=True)
    round_id = db.Column(db.Integer, db.ForeignKey('game_rounds.id'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id'), nullable=False)
    guess = db.Column(db.String(255), nullable=False)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    points = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    player = db.relationship('Player')

    def to_dict(self):
        return {
            'id': self.id,
            'round_id': self.round_id,
            'player_id': self.player_id,
            'guess': self.guess,
            'is_correct': self.is_correct,
            'points': self.points,
            'created_at': _isoformat(self.created_at),
        }
