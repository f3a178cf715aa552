import base64
from urllib.parse import parse_qs, urlparse

import pytest

from spotify_oauth import build_authorize_url, create_authorization_flow, create_state, parse_redirect_uri


def test_state_is_unique_and_has_enough_entropy() -> None:
    states = {create_state() for _ in range(200)}

    assert len(states) == 200
    for state in states:
        padded = state + "=" * (-len(state) % 4)
        assert len(base64.urlsafe_b64decode(padded)) >= 16


def test_authorize_url_parameters() -> None:
    url = build_authorize_url("abc", "http://localhost:8080/callback", "s1", scopes=["a", "b"])
    parsed = urlparse(url)
    params = parse_qs(parsed.query)

    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://accounts.spotify.com/authorize"
    assert params == {
        "client_id": ["abc"],
        "response_type": ["code"],
        "redirect_uri": ["http://localhost:8080/callback"],
        "scope": ["a b"],
        "state": ["s1"],
        "access_type": ["offline"],
    }


def test_authorization_flow_embeds_its_state() -> None:
    flow = create_authorization_flow("abc", "http://localhost:8080/callback")

    assert parse_qs(urlparse(flow.url).query)["state"] == [flow.state]
    assert create_authorization_flow("abc", "http://localhost:8080/callback").state != flow.state


@pytest.mark.parametrize(
    "uri, expected",
    [
        ("http://localhost:8080/callback", ("localhost", 8080, "/callback")),
        ("http://127.0.0.1:9999/cb", ("127.0.0.1", 9999, "/cb")),
        ("http://localhost", ("localhost", 80, "/")),
    ],
)
def test_parse_redirect_uri(uri: str, expected) -> None:
    assert tuple(parse_redirect_uri(uri)) == expected


@pytest.mark.parametrize("uri", ["", "localhost:8080/callback", "ftp://host/cb"])
def test_parse_redirect_uri_rejects_non_http(uri: str) -> None:
    with pytest.raises(ValueError):
        parse_redirect_uri(uri)
