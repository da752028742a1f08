from focusbuddy import db
from focusbuddy.models import BuddySession
from focusbuddy.services.sessions import lifecycle

HOUR = 60 * 60 * 1000


def test_purge_disabled_by_default(flask_app, fake_clock):
    lifecycle.create_session('user1', 'Study', 25, session_id='abc123')
    fake_clock.advance(48 * HOUR)
    result = flask_app.test_cli_runner().invoke(args=['sessions-purge'])
    assert 'disabled' in result.output
    db.session.remove()
    assert BuddySession.query.filter_by(id='abc123').first() is not None


def test_purge_with_ttl(flask_app, fake_clock):
    lifecycle.create_session('user1', 'Study', 25, session_id='stale1')
    lifecycle.create_session('user1', 'Study', 25, session_id='joined1')
    lifecycle.join_session('joined1')
    fake_clock.advance(3 * HOUR)
    result = flask_app.test_cli_runner().invoke(args=['sessions-purge', '--hours', '2'])
    assert result.exit_code == 0
    assert 'Removed 1' in result.output
    db.session.remove()
    assert BuddySession.query.filter_by(id='stale1').first() is None
    assert BuddySession.query.filter_by(id='joined1').first() is not None
