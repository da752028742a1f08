"""Countdown projection shared by both participants.

Neither side decrements a local timer once the start instant is known; the
remaining time is always recomputed from the server-stamped start time and a
reconciled "server now", so two clients stay in step.
"""

from typing import Optional

MS_PER_MINUTE = 60 * 1000


def end_time_ms(start_time: int, duration_minutes: int) -> int:
    return start_time + duration_minutes * MS_PER_MINUTE


def seconds_remaining(server_now: int, start_time: Optional[int], duration_minutes: int) -> int:
    """Whole seconds left in a session, clamped at zero.

    Before the session starts there is no start instant and the full
    duration is reported.
    """
    if start_time is None:
        return duration_minutes * 60
    return max(0, (end_time_ms(start_time, duration_minutes) - server_now) // 1000)


def format_clock(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f'{minutes:02d}:{secs:02d}'
