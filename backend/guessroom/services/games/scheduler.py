import itertools
import logging
import threading
import time
from typing import Any, Callable, Dict, NamedTuple, Optional


class PendingTransition(NamedTuple):
    token: int
    label: str
    deadline: float
    func: Callable[..., Any]
    args: tuple
    kwargs: dict


class TransitionScheduler:
    """Delayed room transitions, at most one pending per room.

    - Scheduling for a room replaces whatever was pending for it
    - ``cancel`` drops the pending transition
    - A worker only runs its transition if it is still the room's pending one
    - In TESTING mode no worker is spawned; call ``fire`` to run a transition
    """

    def __init__(self, app=None, socketio=None, logger=None):
        self.app = app
        self.socketio = socketio
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._pending: Dict[int, PendingTransition] = {}
        self._tokens = itertools.count(1)

    def init_app(self, app, socketio) -> None:
        self.app = app
        self.socketio = socketio
        self.logger = app.logger

    def schedule(self, room_id: int, delay: float, func: Callable[..., Any], *args, label: str = '', **kwargs) -> int:
        with self._lock:
            token = next(self._tokens)
            replaced = self._pending.get(room_id)
            self._pending[room_id] = PendingTransition(token, label, time.time() + delay, func, args, kwargs)
        if replaced:
            self.logger.info(f"[timer-replace] room={room_id} old={replaced.label} new={label}")
        self.logger.info(f"[timer-set] room={room_id} label={label} delay={delay}s")

        if self._runs_inline():
            return token
        self.socketio.start_background_task(self._worker, room_id, token, delay)
        return token

    def cancel(self, room_id: int) -> bool:
        with self._lock:
            dropped = self._pending.pop(room_id, None)
        if dropped:
            self.logger.info(f"[timer-cancel] room={room_id} label={dropped.label}")
        return dropped is not None

    def pending(self, room_id: int) -> Optional[PendingTransition]:
        with self._lock:
            return self._pending.get(room_id)

    def fire(self, room_id: int, token: Optional[int] = None) -> bool:
        """Run the room's pending transition now.

        With ``token`` set, only runs if that transition is still pending.
        """
        with self._lock:
            entry = self._pending.get(room_id)
            if entry is None or (token is not None and entry.token != token):
                entry = None
            else:
                del self._pending[room_id]
        if entry is None:
            self.logger.info(f"[timer-abort] room={room_id} token={token} no longer pending")
            return False
        self.logger.info(f"[timer-fire] room={room_id} label={entry.label}")
        try:
            entry.func(*entry.args, **entry.kwargs)
        except Exception:
            self.logger.exception(f"[timer-error] room={room_id} label={entry.label}")
        return True

    def _runs_inline(self) -> bool:
        if self.app is None or self.socketio is None:
            return True
        return bool(self.app.config.get('TESTING')) and not self.app.config.get('ENABLE_SCHEDULER_IN_TESTS')

    def _worker(self, room_id: int, token: int, delay: float) -> None:
        # heartbeat sleep loop if enabled
        hb = int(self.app.config.get('TIMER_HEARTBEAT_SEC', 0) or 0)
        if hb > 0:
            slept = 0.0
            while slept < delay:
                step = min(hb, delay - slept)
                self.socketio.sleep(step)
                slept += step
                self.logger.info(f"[timer-heartbeat] room={room_id} remaining={max(0, delay - slept)}s")
        else:
            self.socketio.sleep(delay)
        with self.app.app_context():
            self.fire(room_id, token=token)
