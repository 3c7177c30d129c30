"""Classes and functions for loading finished games and bucketing them into rating periods"""

from typing import List, Optional, Sequence
import numpy as np
import polars as pl
from botrate.utils.date_utils import get_duration


class GameDataset:
    """
    Finished games grouped into time-windowed rating periods.

    Each row of the dataframe is one game: a list of player ids (one per slot) and a list of
    scores in the same order. Rows are assigned to rating periods either from a datetime
    column bucketed by rating_period or from an integer time step column.
    """

    def __init__(
        self,
        df: pl.DataFrame,
        players_col: str,
        scores_col: str,
        datetime_col: Optional[str] = None,
        time_step_col: Optional[str] = None,
        rating_period: str = '1H',
        verbose: bool = True,
    ):
        if sum([bool(datetime_col), bool(time_step_col)]) != 1:
            raise ValueError('Specify exactly one of datetime_col or time_step_col')
        if time_step_col:
            df = df.sort(time_step_col, maintain_order=True)
            time_steps = df[time_step_col].to_numpy()
        else:
            df = df.sort(datetime_col, maintain_order=True)
            time_steps = self._convert_datetime(df[datetime_col], rating_period)
        self.verbose = verbose
        self._init_games(df[players_col].to_list(), df[scores_col].to_list(), time_steps)
        if verbose:
            self._print_stats(rating_period if datetime_col else None)

    @staticmethod
    def _convert_datetime(datetime_series: pl.Series, rating_period: str) -> np.ndarray:
        """Convert datetime column to time steps."""
        if datetime_series.dtype == pl.Date:
            datetime_series = datetime_series.cast(pl.Datetime)
        elif datetime_series.dtype == pl.Utf8:
            datetime_series = datetime_series.str.to_datetime()

        seconds_since_epoch = (datetime_series.dt.timestamp('ms') // 1_000).to_numpy()
        period_seconds = get_duration(rating_period)
        return ((seconds_since_epoch - seconds_since_epoch[0]) // period_seconds).astype(np.int64)

    def _init_games(self, player_lists: List[Sequence], score_lists: List[Sequence], time_steps):
        for row_idx, (player_ids, scores) in enumerate(zip(player_lists, score_lists)):
            if len(player_ids) != len(scores):
                raise ValueError(f'row {row_idx} has {len(player_ids)} players but {len(scores)} scores')
            if len(player_ids) < 2:
                raise ValueError(f'row {row_idx} has fewer than 2 players')
        self.player_lists = [list(player_ids) for player_ids in player_lists]
        self.score_lists = [list(scores) for scores in score_lists]
        self.time_steps = np.asarray(time_steps)
        if self.time_steps.size and np.any(np.diff(self.time_steps) < 0):
            raise ValueError('time steps must be non-decreasing')
        self.competitors = sorted({player_id for player_ids in self.player_lists for player_id in player_ids}, key=str)
        self.num_competitors = len(self.competitors)
        self._process_time_steps()

    def _process_time_steps(self):
        """Calculate time period boundaries."""
        self.unique_time_steps, time_indices = np.unique(self.time_steps, return_index=True)
        self.time_step_end_idxs = np.roll(time_indices, -1)
        if self.time_step_end_idxs.size:
            self.time_step_end_idxs[-1] = len(self.time_steps)

    def _print_stats(self, rating_period):
        print('Loaded dataset with:')
        print(f'{len(self)} games')
        print(f'{self.num_competitors} unique competitors')
        if rating_period:
            print(f'{self.num_periods} rating periods of length {rating_period}')

    @property
    def num_periods(self):
        return len(self.unique_time_steps)

    def __len__(self):
        return len(self.player_lists)

    def __iter__(self):
        """Iterate through rating periods."""
        start_idx = 0
        for time_step, end_idx in zip(self.unique_time_steps, self.time_step_end_idxs):
            rows = list(zip(self.player_lists[start_idx:end_idx], self.score_lists[start_idx:end_idx]))
            yield int(time_step), rows
            start_idx = end_idx

    @classmethod
    def init_from_records(cls, player_lists, score_lists, time_steps, verbose: bool = False):
        """Factory method for creating a dataset without a dataframe."""
        dataset = cls.__new__(cls)
        dataset.verbose = verbose
        dataset._init_games(player_lists, score_lists, time_steps)
        return dataset
