import math
import pytest
from botrate.core.entities import Player
from botrate.core.errors import (
    DegenerateOutcomeError,
    InvalidConfigurationError,
    InvalidStateTransition,
    NonDeterministicResultError,
)
from botrate.core.ruleset import Ruleset


def test_defaults():
    ruleset = Ruleset()
    assert ruleset.glicko2_scale_factor == 173.7178
    assert ruleset.rating_interval == 400
    assert ruleset.rating_value == 1500
    assert ruleset.rating_deviation == 350
    assert ruleset.rating_volatility == 0.06
    assert ruleset.system_tau == 0.2
    assert ruleset.convergence_tolerance == 1e-6
    player = ruleset.new_player()
    assert player.rating_triple == (1500.0, 350.0, 0.06)


@pytest.mark.parametrize(
    'kwargs',
    [
        {'system_tau': 0.0},
        {'system_tau': 5.0},
        {'system_tau': -1.0},
        {'convergence_tolerance': 0.0},
        {'convergence_tolerance': 1e-5},
        {'rating_volatility': 0.0},
        {'rating_volatility': math.inf},
        {'volatility_algorithm': 'bisection'},
    ],
)
def test_invalid_configuration(kwargs):
    with pytest.raises(InvalidConfigurationError):
        Ruleset(**kwargs)


def test_player_ids_are_unique_per_ruleset():
    ruleset = Ruleset()
    player_a = ruleset.new_player()
    player_b = ruleset.new_player()
    assert player_a.id != player_b.id
    named = ruleset.new_player(2)
    assert ruleset.new_player().id == 3
    assert ruleset.get_or_create_player(2) is named
    with pytest.raises(ValueError):
        ruleset.new_player(2)
    # every ruleset counts on its own
    assert Ruleset().new_player().id == 0


def test_player_rejects_invalid_ratings():
    with pytest.raises(ValueError):
        Player('a', rating=math.nan)
    with pytest.raises(ValueError):
        Player('a', deviation=-1.0)
    with pytest.raises(ValueError):
        Player('a', volatility=-0.01)
    with pytest.raises(ValueError):
        Player('a', volatility=0.0)


def test_bot_versions():
    ruleset = Ruleset()
    bot = ruleset.new_bot('minimax', version='1.0.0')
    first = bot.current
    game = ruleset.new_game([first, ruleset.new_player()], start_immediately=True)
    game.finish([1.0, 0.0])
    ruleset.close_period_and_update()
    rated = first.rating_triple

    second = bot.new_version('1.1.0')
    assert bot.current is second
    assert bot.version == '1.1.0'
    assert second.previous is first
    assert second.lineage == first.lineage == 'minimax'
    assert second.rating_triple == (1500.0, 350.0, 0.06)
    assert first.rating_triple == rated
    assert [player.version for player in bot.versions] == ['1.0.0', '1.1.0']
    assert first not in ruleset.active_players()
    with pytest.raises(ValueError):
        ruleset.new_bot('minimax')


def test_game_lifecycle():
    ruleset = Ruleset()
    a, b = ruleset.new_player(), ruleset.new_player()
    game = ruleset.new_game([a, b])
    assert game in a.games and game in b.games
    with pytest.raises(InvalidStateTransition):
        game.finish([1.0, 0.0])
    with pytest.raises(InvalidStateTransition):
        game.pairwise_outcomes()
    assert game.start(timestamp=10.0) == 10.0
    with pytest.raises(InvalidStateTransition):
        game.start()
    assert game.finish([1.0, 0.0], timestamp=20.0) == 20.0
    assert game.result == {a.id: 1.0, b.id: 0.0}
    assert game.is_finished
    with pytest.raises(InvalidStateTransition):
        game.finish([0.0, 1.0])
    assert ruleset.pending_games == [game]
    ruleset.close_period_and_update()
    assert ruleset.pending_games == []


def test_game_needs_two_slots():
    ruleset = Ruleset()
    with pytest.raises(ValueError):
        ruleset.new_game([ruleset.new_player()])


def test_game_players_must_belong_to_the_ruleset():
    ruleset = Ruleset()
    stranger = Ruleset().new_player()
    with pytest.raises(ValueError):
        ruleset.new_game([ruleset.new_player(), stranger])


def test_degenerate_game_is_not_recorded():
    ruleset = Ruleset()
    a, b, c = [ruleset.new_player() for _ in range(3)]
    game = ruleset.new_game([a, b, c], start_immediately=True)
    with pytest.raises(DegenerateOutcomeError):
        game.finish([1.0, 0.0, 0.0])
    assert not game.is_finished
    assert ruleset.pending_games == []


def test_deterministic_matchups():
    ruleset = Ruleset(deterministic=True)
    a, b = ruleset.new_player('a'), ruleset.new_player('b')
    ruleset.new_game([a, b], start_immediately=True).finish([1.0, 0.0])
    ruleset.new_game([b, a], start_immediately=True).finish([0.0, 1.0])
    game = ruleset.new_game([a, b], start_immediately=True)
    with pytest.raises(NonDeterministicResultError) as excinfo:
        game.finish([0.0, 1.0])
    assert excinfo.value.previous_game_id == 0
    assert not game.is_finished


def test_order_matters_separates_matchups():
    ruleset = Ruleset(deterministic=True, order_matters=True)
    a, b = ruleset.new_player('a'), ruleset.new_player('b')
    ruleset.new_game([a, b], start_immediately=True).finish([1.0, 0.0])
    # moving first is a different matchup so a different result is allowed
    ruleset.new_game([b, a], start_immediately=True).finish([1.0, 0.0])
    with pytest.raises(NonDeterministicResultError):
        ruleset.new_game([a, b], start_immediately=True).finish([0.5, 0.5])


def test_close_period_with_explicit_games():
    ruleset = Ruleset()
    a, b = ruleset.new_player(), ruleset.new_player()
    first = ruleset.new_game([a, b], start_immediately=True)
    first.finish([1.0, 0.0])
    second = ruleset.new_game([a, b], start_immediately=True)
    second.finish([0.0, 1.0])
    ruleset.close_period_and_update([first])
    assert ruleset.pending_games == [second]
    assert a.rating > b.rating


def test_volatility_algorithm_default():
    assert Ruleset().volatility_algorithm == 'newprocedure'
    assert Ruleset(volatility_algorithm='oldprocedure_simple').volatility_algorithm == 'oldprocedure_simple'


def test_games_are_applied_once():
    ruleset = Ruleset()
    a, b = ruleset.new_player(), ruleset.new_player()
    game = ruleset.new_game([a, b], start_immediately=True)
    game.finish([1.0, 0.0])
    ruleset.close_period_and_update()
    assert game.rating_period == 0
    assert ruleset.num_periods == 1
    rating_after = a.rating_triple
    with pytest.raises(InvalidStateTransition, match='already applied'):
        ruleset.close_period_and_update([game])
    assert a.rating_triple == rating_after
    assert ruleset.num_periods == 1


def test_duplicate_game_in_one_period():
    ruleset = Ruleset()
    a, b = ruleset.new_player(), ruleset.new_player()
    game = ruleset.new_game([a, b], start_immediately=True)
    game.finish([1.0, 0.0])
    with pytest.raises(InvalidStateTransition, match='more than once'):
        ruleset.close_period_and_update([game, game])
    assert a.rating_triple == (1500.0, 350.0, 0.06)
    assert game.rating_period is None
    assert ruleset.pending_games == [game]
