from datetime import datetime
import pytest
import polars as pl
from botrate.core.ruleset import Ruleset
from botrate.utils.data_utils import GameDataset
from botrate.utils.date_utils import get_duration


def test_get_duration():
    assert get_duration('1H') == 3600
    assert get_duration('7d') == 7 * 24 * 3600
    assert get_duration('2W') == 2 * 7 * 24 * 3600
    for bad in ['H', '1Y', '0D', '1H30M']:
        with pytest.raises(ValueError):
            get_duration(bad)


def make_df():
    return pl.DataFrame(
        {
            'date': [
                datetime(2024, 1, 1, 0, 5),
                datetime(2024, 1, 1, 0, 50),
                datetime(2024, 1, 1, 2, 30),
                datetime(2024, 1, 1, 0, 20),
            ],
            'players': [['a', 'b'], ['a', 'c'], ['b', 'c', 'a'], ['c', 'b']],
            'scores': [[1.0, 0.0], [0.5, 0.5], [0.2, 0.3, 0.5], [0.0, 1.0]],
        }
    )


def test_bucketing_by_datetime():
    dataset = GameDataset(make_df(), 'players', 'scores', datetime_col='date', rating_period='1H', verbose=False)
    assert len(dataset) == 4
    assert dataset.competitors == ['a', 'b', 'c']
    periods = list(dataset)
    assert [time_step for time_step, _ in periods] == [0, 2]
    assert periods[0][1] == [(['a', 'b'], [1.0, 0.0]), (['c', 'b'], [0.0, 1.0]), (['a', 'c'], [0.5, 0.5])]
    assert periods[1][1] == [(['b', 'c', 'a'], [0.2, 0.3, 0.5])]


def test_bucketing_by_time_step():
    df = make_df().with_columns(pl.Series('step', [0, 0, 1, 1]))
    dataset = GameDataset(df, 'players', 'scores', time_step_col='step', verbose=False)
    assert dataset.num_periods == 2
    with pytest.raises(ValueError):
        GameDataset(df, 'players', 'scores', datetime_col='date', time_step_col='step', verbose=False)


def test_mismatched_row():
    with pytest.raises(ValueError):
        GameDataset.init_from_records([['a', 'b']], [[1.0]], [0])


def test_fit_dataset():
    dataset = GameDataset.init_from_records(
        player_lists=[['a', 'b'], ['a', 'b'], ['b', 'c']],
        score_lists=[[1.0, 0.0], [1.0, 0.0], [1.0, 0.0]],
        time_steps=[0, 0, 1],
    )
    ruleset = Ruleset()
    probs = ruleset.rating_system.fit_dataset(dataset, return_pre_match_probs=True)
    assert len(probs) == 3
    assert probs[0] == {'a': 0.5, 'b': 0.5}
    # the third game was predicted after the first period was applied
    assert probs[2]['b'] < 0.5
    a, b, c = (ruleset.players[name] for name in 'abc')
    assert a.rating > b.rating > c.rating
    assert ruleset.pending_games == []
    assert len(ruleset.games) == 3
