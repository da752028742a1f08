from focusbuddy.services.sessions import clock
from focusbuddy.services.sessions.clock import ClockReconciler, offset_for


def test_server_now_uses_wall_clock(fake_clock):
    assert clock.server_now_ms() == fake_clock.now_ms
    fake_clock.advance(1500)
    assert clock.server_now_ms() == fake_clock.now_ms


def test_offset_for_client_behind_server():
    assert offset_for(9_000, server_ms=10_000) == 1_000
    assert offset_for(11_000, server_ms=10_000) == -1_000


def test_sync_without_round_trip_uses_receipt_time():
    local = {'now': 5_000}
    reconciler = ClockReconciler(local_clock=lambda: local['now'])
    assert reconciler.sync(server_ms=8_000) == 3_000
    local['now'] = 6_000
    assert reconciler.server_now() == 9_000


def test_sync_with_round_trip_uses_midpoint():
    reconciler = ClockReconciler(local_clock=lambda: 0)
    offset = reconciler.sync(server_ms=10_100, sent_at_ms=10_000, received_at_ms=10_200)
    assert offset == 0


def test_offset_is_replaced_not_smoothed():
    reconciler = ClockReconciler(local_clock=lambda: 1_000)
    reconciler.apply_offset(500)
    reconciler.apply_offset(-200)
    assert reconciler.offset == -200
    assert reconciler.server_now() == 800


def test_subscribers_fire_only_on_change():
    reconciler = ClockReconciler(local_clock=lambda: 0)
    seen = []
    unsubscribe = reconciler.subscribe(seen.append)
    reconciler.apply_offset(250)
    reconciler.apply_offset(250)
    reconciler.apply_offset(300)
    unsubscribe()
    reconciler.apply_offset(400)
    unsubscribe()
    assert seen == [250, 300]
