from focusbuddy.services.sessions.links import build_join_link, is_valid_session_id, parse_join_link


def test_build_join_link():
    assert build_join_link('abc123') == 'focusnest://buddy/abc123'
    assert build_join_link('abc123', scheme='focusapp') == 'focusapp://buddy/abc123'


def test_parse_join_link():
    assert parse_join_link('focusnest://buddy/abc123') == 'abc123'
    assert parse_join_link('focusnest://buddy/abc123/') == 'abc123'
    assert parse_join_link('focusnest://buddy/abc123', scheme='focusnest') == 'abc123'


def test_parse_rejects_other_links():
    assert parse_join_link('') is None
    assert parse_join_link('focusnest://settings/abc123') is None
    assert parse_join_link('focusnest://buddy/') is None
    assert parse_join_link('focusnest://buddy/ABC!!') is None
    assert parse_join_link('otherapp://buddy/abc123', scheme='focusnest') is None


def test_session_id_format():
    assert is_valid_session_id('k3j9x0qa')
    assert not is_valid_session_id('abc')
    assert not is_valid_session_id('Has-Caps')
    assert not is_valid_session_id(None)
