import re
from datetime import datetime, timedelta, timezone

from fastapi import Response

from notevault.security.cookies import AUTH_COOKIE, REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies


def _cookies(response):
    return {header.split("=", 1)[0]: header for header in response.headers.getlist("set-cookie")}


def _max_age(header):
    return int(re.search(r"Max-Age=(\d+)", header).group(1))


def test_sets_both_cookies_with_strict_flags():
    now = datetime.now(timezone.utc)
    response = Response()

    set_auth_cookies(response, "access", now + timedelta(minutes=15), "refresh", now + timedelta(days=7))

    cookies = _cookies(response)
    assert set(cookies) == {AUTH_COOKIE, REFRESH_COOKIE}
    access = cookies[AUTH_COOKIE]
    assert access.startswith(f"{AUTH_COOKIE}=access;")
    assert "HttpOnly" in access
    assert "Secure" in access
    assert "SameSite=strict" in access
    assert "Path=/" in access
    assert 890 <= _max_age(access) <= 900
    assert _max_age(cookies[REFRESH_COOKIE]) > 6 * 24 * 3600


def test_refresh_cookie_is_optional():
    response = Response()
    set_auth_cookies(response, "access", datetime.now(timezone.utc) + timedelta(minutes=1))
    assert set(_cookies(response)) == {AUTH_COOKIE}


def test_naive_expiry_is_treated_as_utc():
    response = Response()
    naive = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1)

    set_auth_cookies(response, "access", naive)

    assert 3590 <= _max_age(_cookies(response)[AUTH_COOKIE]) <= 3600


def test_past_expiry_and_clear_give_zero_max_age():
    response = Response()
    set_auth_cookies(response, "access", datetime.now(timezone.utc) - timedelta(minutes=1))
    assert _max_age(_cookies(response)[AUTH_COOKIE]) == 0

    response = Response()
    clear_auth_cookies(response)
    cookies = _cookies(response)
    assert set(cookies) == {AUTH_COOKIE, REFRESH_COOKIE}
    assert all(_max_age(header) == 0 for header in cookies.values())
