import time
from typing import Set, Tuple

from focusbuddy import socketio
from focusbuddy.errors import SessionError
from focusbuddy.models import STATUS_ACTIVE
from focusbuddy.store import SessionStore
from . import clock
from .countdown import end_time_ms
from .lifecycle import observe_session


_scheduled_sessions: Set[Tuple[str, int]] = set()


def schedule_completion(app, session_id: str) -> None:
    """Complete an active session when its countdown runs out.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - Ensures a single timer per (session_id, start_time)
    - The worker re-reads the record and completes it only if the same run is
      still active, so a client that already completed it wins
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    with app.app_context():
        record = SessionStore().get(session_id)
        if not record or record.status != STATUS_ACTIVE or record.start_time is None:
            return
        start_time = record.start_time
        key = (session_id, start_time)
        if key in _scheduled_sessions:
            app.logger.info(f"[timer-skip] session={session_id} already scheduled")
            return
        _scheduled_sessions.add(key)
        deadline = end_time_ms(start_time, record.duration)
        delay = max(0.0, (deadline - clock.server_now_ms()) / 1000.0)
        app.logger.info(f"[timer-set] session={session_id} delay={delay:.1f}s deadline={deadline}")

    def _worker(sid: str, expected_start: int, delay_sec: float):
        hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0) or 0)
        if hb > 0:
            slept = 0.0
            while slept < delay_sec:
                step = min(hb, delay_sec - slept)
                time.sleep(step)
                slept += step
                app.logger.info(f"[timer-heartbeat] session={sid} remaining={max(0.0, delay_sec - slept):.1f}s")
        elif delay_sec:
            time.sleep(delay_sec)
        with app.app_context():
            _scheduled_sessions.discard((sid, expected_start))
            store = SessionStore()
            current = store.get(sid)
            if not current or current.status != STATUS_ACTIVE or current.start_time != expected_start:
                app.logger.info(f"[timer-abort] session={sid} no longer the same active run")
                return
            try:
                record, remaining = observe_session(sid, store=store)
            except SessionError as exc:
                app.logger.warning(f"[timer-error] session={sid} error={exc.message}")
                return
            app.logger.info(f"[timer-fire] session={sid} status={record.status} remaining={remaining}s")

    if app.config.get('TESTING'):
        _worker(session_id, start_time, delay)
    else:
        socketio.start_background_task(_worker, session_id, start_time, delay)
