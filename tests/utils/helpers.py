"""
Test helper functions for common testing operations

These helpers drive the login flows and check response shapes so the tests
read as scenarios.
"""

from typing import Any, Dict, Optional


def assert_response_structure(response_data: Dict[str, Any], expected_keys: list[str], optional_keys: Optional[list[str]] = None):
    """Assert that response has expected structure"""
    optional_keys = optional_keys or []

    # Check required keys are present
    for key in expected_keys:
        assert key in response_data, f"Required key '{key}' missing from response"

    # Check no unexpected keys (except optional ones)
    allowed_keys = set(expected_keys + optional_keys)
    actual_keys = set(response_data.keys())
    unexpected_keys = actual_keys - allowed_keys

    assert not unexpected_keys, f"Unexpected keys in response: {unexpected_keys}"


def assert_redirect(response, location: str):
    """Assert a 302 to ``location``"""
    assert response.status_code == 302, f"Expected redirect, got {response.status_code}"
    assert response.headers["location"] == location


def assert_no_sensitive_data_in_logs(caplog, sensitive_patterns: list[str]):
    """Assert that sensitive data patterns don't appear in logs"""
    all_logs = " ".join([record.getMessage() for record in caplog.records])

    for pattern in sensitive_patterns:
        assert pattern not in all_logs, f"Sensitive pattern '{pattern}' found in logs"


def assert_security_headers_present(response, required_headers: Optional[list[str]] = None):
    """Assert that security headers are present in response"""
    required_headers = required_headers or [
        "x-content-type-options",
        "x-frame-options",
        "referrer-policy",
        "content-security-policy",
    ]

    for header in required_headers:
        assert header in response.headers, f"Security header '{header}' missing"


def web_login(client, username: str, password: str):
    """Submit the login form without following the redirect"""
    return client.post(
        "/login",
        data={"username": username, "password": password},
        follow_redirects=False,
    )


def web_register(client, username: str, password: str, name: str = "", confirm: Optional[str] = None):
    return client.post(
        "/register",
        data={
            "username": username,
            "name": name,
            "password": password,
            "confirmPassword": password if confirm is None else confirm,
        },
        follow_redirects=False,
    )


def api_login(client, username: str, password: str):
    return client.post("/api/auth", json={"username": username, "password": password})


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
