import logging

from .errors import DuplicateGuess, GameError
from .scoring import is_correct_guess, points_for_guess


class GuessProcessor:
    """Validates, scores and records one guess per player per round.

    After every recorded guess it checks whether the round is complete
    (everyone answered, or everyone answered correctly, depending on
    ``EARLY_END_POLICY``) and asks the coordinator to end it early.
    """

    def __init__(self, store, coordinator, logger=None):
        self.store = store
        self.coordinator = coordinator
        self.logger = logger or logging.getLogger(__name__)

    def submit_guess(self, round_id: int, player_id: int, guess_text: str, time_remaining: float) -> bool:
        try:
            if self.store.find_guess(round_id, player_id) is not None:
                raise DuplicateGuess(f'player {player_id} already guessed in round {round_id}')
            round_ = self.store.get_round(round_id)
            if round_ is None:
                self.logger.info(f"[guess-reject] round={round_id} not found")
                return False
            if round_.is_over:
                self.logger.info(f"[guess-reject] round={round_id} already ended")
                return False
            room_id = round_.room_id
            player = self.store.get_player(player_id)
            if player is None or player.room_id != room_id:
                self.logger.info(f"[guess-reject] round={round_id} player={player_id} not in room")
                return False
            room = self.store.get_room(room_id)
            if room is None or round_.round_number != room.current_round:
                self.logger.info(f"[guess-reject] round={round_id} is not the room's current round")
                return False

            correct = is_correct_guess(guess_text, round_.word)
            points = points_for_guess(correct, time_remaining, room.round_time)
            self.store.add_guess(round_id, player_id, guess_text, correct, points)
            self.logger.info(
                f"[guess] round={round_id} player={player_id} correct={correct} points={points}"
            )
            if points > 0:
                self.store.add_score(player_id, points)
        except DuplicateGuess as exc:
            self.logger.info(f"[guess-reject] {exc}")
            return False
        except GameError as exc:
            self.logger.error(f"[guess] round={round_id} player={player_id} failed: {exc}")
            return False

        self._check_round_complete(room_id, round_id)
        return True

    def _check_round_complete(self, room_id: int, round_id: int) -> None:
        policy = self.coordinator.config['EARLY_END_POLICY']
        try:
            guesses = self.store.list_guesses(round_id)
            player_count = self.store.count_players(room_id)
        except GameError as exc:
            self.logger.error(f"[early-end] room={room_id} round={round_id} check failed: {exc}")
            return
        if policy == 'all_correct':
            answered = sum(1 for g in guesses if g.is_correct)
        else:
            answered = len(guesses)
        if player_count and answered >= player_count:
            self.logger.info(
                f"[early-end] room={room_id} round={round_id} policy={policy} answered={answered}/{player_count}"
            )
            self.coordinator.schedule_early_end(room_id, round_id)
