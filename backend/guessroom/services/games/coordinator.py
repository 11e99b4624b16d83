"""Round lifecycle for a room.

Rooms move ``waiting -> playing -> round_end -> playing ... -> finished``.
Every decision re-reads the store. Store failures are logged and reported as
``False``/``None``; nothing raises past this module.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from guessroom.models import (
    Room, Player, WAITING, PLAYING, ROUND_END, FINISHED, generate_room_code,
    generate_avatar_seed, as_utc, utcnow,
)
from .errors import GameError, RoomNotFound
from .feed import INSERT
from .guesses import GuessProcessor
from .scoring import revealed_hints, time_remaining

MAX_CODE_ATTEMPTS = 10

DEFAULTS = {
    'DEFAULT_TOTAL_ROUNDS': 5,
    'DEFAULT_ROUND_TIME_SEC': 60,
    'ROUND_END_DELAY_SEC': 5,
    'EARLY_END_DELAY_SEC': 5,
    'EARLY_END_POLICY': 'all_answered',
    'ROUND_TIMER_ENABLED': False,
    'HINT1_AT_SEC': 40,
    'HINT2_AT_SEC': 20,
}


class RoundCoordinator:
    def __init__(self, store, scheduler, definitions, config: Optional[Mapping[str, Any]] = None, logger=None):
        self.store = store
        self.scheduler = scheduler
        self.definitions = definitions
        self.config = dict(DEFAULTS)
        if config:
            self.config.update({k: config[k] for k in DEFAULTS if k in config})
        self.logger = logger or logging.getLogger(__name__)
        self.guesses = GuessProcessor(store, self, logger=self.logger)

    # ---- room setup ----

    def create_room(self) -> Optional[Room]:
        try:
            code = self._fresh_code()
            room = self.store.create_room(
                code,
                total_rounds=int(self.config['DEFAULT_TOTAL_ROUNDS']),
                round_time=int(self.config['DEFAULT_ROUND_TIME_SEC']),
            )
        except GameError as exc:
            self.logger.error(f"[create-room] failed: {exc}")
            return None
        self.logger.info(f"[create-room] room={room.id} code={room.code}")
        return room

    def _fresh_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_room_code()
            if self.store.find_room_by_code(code) is None:
                return code
        # the unique index rejects a collision at insert time
        return generate_room_code()

    def join_room(self, code: str, player_name: str) -> Optional[Tuple[Room, Player]]:
        lookup = (code or '').strip().upper()
        try:
            room = self.store.find_room_by_code(lookup)
            if room is None:
                raise RoomNotFound(f'no room with code {lookup!r}')
            player = self.store.add_player(room.id, player_name, generate_avatar_seed())
            if room.created_by is None and self.store.claim_host(room.id, player.id):
                self.logger.info(f"[host] room={room.id} player={player.id}")
            room = self.store.get_room(room.id)
        except GameError as exc:
            self.logger.error(f"[join-room] code={lookup} failed: {exc}")
            return None
        self.logger.info(f"[join-room] room={room.id} player={player.id} name={player_name}")
        return room, player

    def update_game_settings(self, room_id: int, round_time: int, total_rounds: int) -> bool:
        try:
            round_time, total_rounds = int(round_time), int(total_rounds)
        except (TypeError, ValueError):
            round_time = total_rounds = 0
        if round_time <= 0 or total_rounds <= 0:
            self.logger.info(f"[settings-reject] room={room_id} round_time={round_time} total_rounds={total_rounds}")
            return False
        try:
            room = self.store.get_room(room_id)
            if room is None:
                return False
            if room.status in (PLAYING, ROUND_END) and total_rounds < room.current_round:
                self.logger.info(
                    f"[settings-reject] room={room_id} total_rounds={total_rounds} below current_round={room.current_round}"
                )
                return False
            self.store.update_room(room_id, round_time=round_time, total_rounds=total_rounds)
        except GameError as exc:
            self.logger.error(f"[settings] room={room_id} failed: {exc}")
            return False
        self.logger.info(f"[settings] room={room_id} round_time={round_time} total_rounds={total_rounds}")
        return True

    # ---- round lifecycle ----

    def start_game(self, room_id: int) -> bool:
        try:
            room = self.store.get_room(room_id)
            if room is None:
                return False
            # a playing room without round #1 is a half-failed start and may be retried
            if room.status == PLAYING and room.current_round == 1:
                if self.store.find_round(room_id, 1) is not None:
                    self.logger.info(f"[start-skip] room={room_id} already started")
                    return False
            elif room.status != WAITING:
                self.logger.info(f"[start-skip] room={room_id} status={room.status}")
                return False
            self.store.update_room(room_id, status=PLAYING, current_round=1)
            round_ = self.store.create_round(room_id, 1, self.definitions.get_next_definition())
        except GameError as exc:
            self.logger.error(f"[start-game] room={room_id} failed: {exc}")
            return False
        self.logger.info(f"[start-game] room={room_id} round={round_.id}")
        self._schedule_round_expiry(room, round_)
        return True

    def start_next_round(self, room_id: int, current_round: int, expected_status: Optional[str] = None) -> bool:
        try:
            room = self.store.get_room(room_id)
            if room is None:
                return False
            if room.status == FINISHED or (expected_status and room.status != expected_status):
                self.logger.info(
                    f"[next-round-skip] room={room_id} status={room.status} expected={expected_status}"
                )
                return False
            if current_round >= room.total_rounds:
                self.scheduler.cancel(room_id)
                self.store.update_room(room_id, status=FINISHED)
                self.logger.info(f"[finish] room={room_id} finished at round={current_round}")
                return True
            next_number = current_round + 1
            if self.store.find_round(room_id, next_number) is not None:
                self.logger.info(f"[next-round-skip] room={room_id} round={next_number} exists")
                return False
            if not self.store.advance_room(room_id, current_round, next_number):
                self.logger.info(
                    f"[next-round-skip] room={room_id} expected round={current_round} actual={room.current_round}"
                )
                return False
            self.scheduler.cancel(room_id)
            previous = self.store.find_round(room_id, current_round)
            if previous is not None and self.store.close_round(previous.id):
                self.logger.info(f"[next-round] room={room_id} closed open round={previous.id}")
            round_ = self.store.create_round(room_id, next_number, self.definitions.get_next_definition())
        except GameError as exc:
            self.logger.error(f"[next-round] room={room_id} failed: {exc}")
            return False
        self.logger.info(f"[next-round] room={room_id} advance round {current_round} -> {next_number}")
        self._schedule_round_expiry(room, round_)
        return True

    def end_round(self, room_id: int, round_id: int, expected_status: Optional[str] = None) -> bool:
        try:
            room = self.store.get_room(room_id)
            round_ = self.store.get_round(round_id)
            if room is None or round_ is None or round_.room_id != room_id:
                return False
            if expected_status and room.status != expected_status:
                self.logger.info(f"[end-round-skip] room={room_id} status={room.status} expected={expected_status}")
                return False
            if round_.round_number != room.current_round:
                self.logger.info(
                    f"[end-round-skip] room={room_id} round={round_.round_number} current={room.current_round}"
                )
                return False
            if not self.store.close_round(round_id):
                self.logger.info(f"[end-round-skip] room={room_id} round={round_id} already ended")
                return False
            self.scheduler.cancel(room_id)
            current, total = room.current_round, room.total_rounds
            if current >= total:
                self.store.update_room(room_id, status=FINISHED)
                self.logger.info(f"[finish] room={room_id} finished at round={current}")
                return True
            self.store.update_room(room_id, status=ROUND_END)
        except GameError as exc:
            self.logger.error(f"[end-round] room={room_id} round={round_id} failed: {exc}")
            return False
        self.logger.info(f"[end-round] room={room_id} round={round_id} number={current}")
        self.scheduler.schedule(
            room_id,
            self.config['ROUND_END_DELAY_SEC'],
            self.start_next_round,
            room_id,
            current,
            expected_status=ROUND_END,
            label='next_round',
        )
        return True

    def schedule_early_end(self, room_id: int, round_id: int) -> None:
        self.scheduler.schedule(
            room_id,
            self.config['EARLY_END_DELAY_SEC'],
            self.end_round,
            room_id,
            round_id,
            expected_status=PLAYING,
            label='early_end',
        )

    def _schedule_round_expiry(self, room: Room, round_) -> None:
        if not self.config['ROUND_TIMER_ENABLED']:
            return
        self.scheduler.schedule(
            room.id,
            room.round_time,
            self.end_round,
            room.id,
            round_.id,
            expected_status=PLAYING,
            label='round_expiry',
        )

    # ---- guesses ----

    def submit_guess(self, round_id: int, player_id: int, guess_text: str, time_remaining: float) -> bool:
        return self.guesses.submit_guess(round_id, player_id, guess_text, time_remaining)

    # ---- read side ----

    def room_state(self, room: Room) -> Dict[str, Any]:
        """Snapshot of a room for clients: players, current round, countdown and hints."""
        state = room.to_dict()
        state['players'] = [p.to_dict() for p in self.store.list_players(room.id)]
        state['round'] = None
        state['time_remaining'] = None
        round_ = self.store.find_round(room.id, room.current_round) if room.status != WAITING else None
        if round_ is not None:
            round_dict = self.round_payload(round_, room)
            round_dict['guesses'] = [g.to_dict() for g in self.store.list_guesses(round_.id)]
            state['round'] = round_dict
            state['time_remaining'] = round_dict['time_remaining']
        return state

    def round_payload(self, round_, room: Optional[Room] = None) -> Dict[str, Any]:
        """Serialized round with its countdown and only the hints revealed so far."""
        room = room or round_.room
        if round_.is_over:
            remaining = 0
        else:
            elapsed = (utcnow() - as_utc(round_.start_time)).total_seconds()
            remaining = time_remaining(room.round_time, elapsed)
        round_dict = round_.to_dict()
        round_dict.update(revealed_hints(
            round_, remaining, int(self.config['HINT1_AT_SEC']), int(self.config['HINT2_AT_SEC'])
        ))
        round_dict['time_remaining'] = remaining
        return round_dict

    def subscribe_to_room(self, room_id: int, callback: Callable[[Dict[str, Any]], None]):
        sub = self.store.feed.subscribe('rooms', 'id', room_id, lambda event, record: callback(record))
        room = self.store.get_room(room_id)
        if room is not None:
            callback(room.to_dict())
        return sub

    def subscribe_to_players(self, room_id: int, callback: Callable[[List[Dict[str, Any]]], None]):
        def _refresh(*_):
            callback([p.to_dict() for p in self.store.list_players(room_id)])

        sub = self.store.feed.subscribe('players', 'room_id', room_id, _refresh)
        _refresh()
        return sub

    def subscribe_to_round(self, round_id: int, callback: Callable[[Dict[str, Any]], None]):
        sub = self.store.feed.subscribe('game_rounds', 'id', round_id, lambda event, record: callback(record))
        round_ = self.store.get_round(round_id)
        if round_ is not None:
            callback(self.round_payload(round_))
        return sub

    def subscribe_to_guesses(self, round_id: int, callback: Callable[[Dict[str, Any]], None]):
        def _on_change(event, record):
            if event == INSERT:
                callback(record)

        sub = self.store.feed.subscribe('guesses', 'round_id', round_id, _on_change)
        for guess in self.store.list_guesses(round_id):
            callback(guess.to_dict())
        return sub
