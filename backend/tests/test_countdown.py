from focusbuddy.services.sessions.countdown import end_time_ms, format_clock, seconds_remaining

T = 1_760_000_000_000
MINUTE = 60 * 1000


def test_ten_minutes_in_leaves_fifteen():
    assert seconds_remaining(T + 10 * MINUTE, T, 25) == 900


def test_zero_at_end_of_session():
    assert seconds_remaining(T + 25 * MINUTE, T, 25) == 0


def test_clamped_at_zero_after_end():
    assert seconds_remaining(T + 90 * MINUTE, T, 25) == 0


def test_partial_seconds_round_down():
    assert seconds_remaining(T + 1, T, 25) == 25 * 60 - 1
    assert seconds_remaining(T + 25 * MINUTE - 999, T, 25) == 0


def test_non_increasing_as_server_time_advances():
    previous = None
    for now in range(T - MINUTE, T + 27 * MINUTE, 7_919):
        value = seconds_remaining(now, T, 25)
        assert value >= 0
        if previous is not None:
            assert value <= previous
        previous = value


def test_full_duration_before_start():
    assert seconds_remaining(T, None, 50) == 50 * 60


def test_end_time_and_clock_format():
    assert end_time_ms(T, 25) == T + 25 * MINUTE
    assert format_clock(900) == '15:00'
    assert format_clock(61) == '01:01'
    assert format_clock(-5) == '00:00'
