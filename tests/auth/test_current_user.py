"""Tests for request identity helpers."""

from unittest.mock import MagicMock

from cms_admin.auth.middleware import SYSTEM_USER, current_user_id, get_user


def _request(session=None):
    request = MagicMock()
    request.scope = {} if session is None else {"session": session}
    request.session = session
    return request


def test_get_user_returns_none_without_session():
    assert get_user(_request()) is None


def test_get_user_returns_none_for_empty_session():
    assert get_user(_request({})) is None


def test_get_user_returns_user_from_session():
    user = get_user(_request({"user": {"id": "u-1", "name": "Test User"}}))
    assert user == {"id": "u-1", "name": "Test User"}


def test_get_user_ignores_non_dict_user():
    assert get_user(_request({"user": "u-1"})) is None


def test_current_user_id_prefers_id():
    assert current_user_id(_request({"user": {"id": "u-1", "email": "a@b.c"}})) == "u-1"


def test_current_user_id_falls_back_to_email():
    assert current_user_id(_request({"user": {"email": "a@b.c"}})) == "a@b.c"


def test_current_user_id_defaults_to_system():
    assert current_user_id(_request()) == SYSTEM_USER
    assert current_user_id(_request({"user": {}})) == "system"
