"""Client address and user agent captured with submissions."""

from starlette.requests import Request

from api.services.request_info import USER_AGENT_MAX, get_client_ip, get_user_agent


def make_request(client_host, headers=None) -> Request:
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/api/v1/public/membership/apply",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": (client_host, 50000) if client_host else None,
    })


def test_forwarded_header_ignored_from_untrusted_client():
    request = make_request("203.0.113.7", {"X-Forwarded-For": "198.51.100.1"})
    assert get_client_ip(request) == "203.0.113.7"


def test_client_behind_trusted_proxy():
    request = make_request("10.0.0.2", {"X-Forwarded-For": "6.6.6.6, 198.51.100.1, 10.0.0.9"})
    assert get_client_ip(request) == "198.51.100.1"


def test_non_ip_forwarded_entries_are_skipped():
    request = make_request(
        "10.0.0.2",
        {"X-Forwarded-For": "198.51.100.1, <script>alert(1)</script>, unknown"},
    )
    assert get_client_ip(request) == "198.51.100.1"


def test_only_garbage_forwarded_falls_back_to_peer():
    request = make_request("10.0.0.2", {"X-Forwarded-For": "not-an-ip, " + "x" * 100})
    assert get_client_ip(request) == "10.0.0.2"


def test_ipv6_entry_is_normalized():
    request = make_request("10.0.0.2", {"X-Forwarded-For": " 2001:DB8::1 "})
    assert get_client_ip(request) == "2001:db8::1"


def test_user_agent_is_truncated():
    request = make_request("10.0.0.2", {"User-Agent": "a" * 1000})
    assert len(get_user_agent(request)) == USER_AGENT_MAX
    assert get_user_agent(make_request("10.0.0.2")) is None
