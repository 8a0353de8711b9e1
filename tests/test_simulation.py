import asyncio

from memory_match.engine import GameConfig, Phase
from memory_match.simulation import SimulatedPlayer, play_game, simulation_main


def test_play_game_completes():
    stats = play_game(GameConfig.for_difficulty("easy"), seed=5)
    assert stats.result is not None
    assert stats.moves == stats.result.moves
    assert stats.moves >= 6
    assert stats.accepted_flips == 2 * stats.moves


def test_perfect_recall_beats_no_recall_on_average():
    config = GameConfig.for_difficulty("medium")
    good = sum(play_game(config, seed=s, recall=1.0).moves for s in range(5))
    bad = sum(play_game(config, seed=s, recall=0.0).moves for s in range(5))
    assert good < bad


def test_impatient_clicks_are_locked():
    player = SimulatedPlayer(GameConfig(pairs=4), seed=2, impatience=1.0)
    while not player.finished():
        player.take_turn()
    stats = player.summary()
    assert stats.locked_flips > 0
    assert player.engine.phase is Phase.COMPLETE


def test_simulation_main_runs_players_concurrently(capsys):
    results = asyncio.run(simulation_main(players=3, difficulty="easy", seed=1))
    assert len(results) == 3
    assert all(r.result is not None for r in results)
    out = capsys.readouterr().out
    assert "SIMULATION COMPLETE" in out
