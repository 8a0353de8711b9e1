import pytest

from memory_match.engine import Renderer


class ScriptedRandom:
    """Replays fixed draws, cycling when exhausted."""

    def __init__(self, values):
        self._values = list(values)
        self._i = 0

    def uniform(self):
        value = self._values[self._i % len(self._values)]
        self._i += 1
        return value


class RecordingRenderer(Renderer):
    def __init__(self):
        self.calls = []

    def _add(self, *call):
        self.calls.append(call)

    def on_layout(self, cards):
        self._add("layout", cards)

    def on_reveal(self, card_id, symbol):
        self._add("reveal", card_id, symbol)

    def on_hide(self, card_id):
        self._add("hide", card_id)

    def on_matched(self, card_id):
        self._add("matched", card_id)

    def on_move_count_changed(self, moves):
        self._add("moves", moves)

    def on_time_changed(self, seconds):
        self._add("time", seconds)

    def on_pairs_changed(self, matched, total):
        self._add("pairs", matched, total)

    def on_mismatch(self, card_id1, card_id2):
        self._add("mismatch", card_id1, card_id2)

    def on_complete(self, result):
        self._add("complete", result)

    def of(self, kind):
        return [c[1:] for c in self.calls if c[0] == kind]


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def abab():
    # sample() draws 0.0, 0.0 -> [A, B]; shuffle draws ~1.0 three times -> no swaps
    return ScriptedRandom([0.0, 0.0, 0.999, 0.999, 0.999])
