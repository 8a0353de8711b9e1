import random

import pytest

from memory_match.client import GameClient, autoplay
from memory_match.clock import ManualClock
from memory_match.server import create_app


class _Response:
    def __init__(self, flask_response):
        self.status_code = flask_response.status_code
        self._json = flask_response.get_json()

    def json(self):
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")


class FlaskSession:
    """Stands in for requests.Session by routing calls to a Flask test client."""

    def __init__(self, test_client, base_url):
        self._client = test_client
        self._base = base_url

    def _path(self, url):
        return url[len(self._base):]

    def get(self, url, params=None, timeout=None):
        return _Response(self._client.get(self._path(url), query_string=params))

    def post(self, url, json=None, timeout=None):
        return _Response(self._client.post(self._path(url), json=json))

    def delete(self, url, timeout=None):
        return _Response(self._client.delete(self._path(url)))


@pytest.fixture
def app():
    return create_app(clock_factory=ManualClock)


@pytest.fixture
def game_client(app):
    base = "http://memory.test"
    return GameClient(base, session=FlaskSession(app.test_client(), base))


def test_autoplay_finishes_game(app, game_client):
    game = game_client.new_game("easy", seed=11)
    game_id = game["game_id"]
    clock = app.config["GAMES"].get(game_id).clock

    final = autoplay(game_client, game_id, wait=lambda: clock.advance(500), rng=random.Random(0))
    assert final["phase"] == "complete"
    assert final["pairs_matched"] == 6
    assert final["result"]["moves"] == final["moves"]

    events = game_client.events(game_id)
    assert events[-1]["type"] == "complete"

    assert game_client.discard(game_id) == {"status": "ok"}


def test_client_raises_on_http_error(game_client):
    with pytest.raises(RuntimeError):
        game_client.state("missing")


def test_reset_through_client(app, game_client):
    game_id = game_client.new_game("easy", seed=2)["game_id"]
    game_client.flip(game_id, 0)
    state = game_client.reset(game_id)["state"]
    assert state["phase"] == "idle"
    assert state["pending"] == []


def test_autoplay_picks_up_a_pending_card(app, game_client):
    game_id = game_client.new_game("easy", seed=4)["game_id"]
    clock = app.config["GAMES"].get(game_id).clock
    game_client.flip(game_id, 0)

    final = autoplay(game_client, game_id, wait=lambda: clock.advance(500), rng=random.Random(1))
    assert final["phase"] == "complete"
    assert final["pairs_matched"] == 6
