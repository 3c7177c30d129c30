"""base class for period based rating systems"""
from abc import ABC, abstractmethod
from itertools import combinations
from typing import Dict, Hashable, List, Sequence
from tqdm import tqdm
from botrate.core.entities import Game, Player
from botrate.utils.data_utils import GameDataset


class PeriodRatingSystem(ABC):
    """
    Base class for rating systems which update every player of a ruleset once per rating period.

    Attributes:
        ruleset (Ruleset): configuration and registry of the players being rated.
    """

    def __init__(self, ruleset):
        self.ruleset = ruleset

    @abstractmethod
    def predict(self, player_1: Player, player_2: Player) -> float:
        """
        Probability of player_1 beating player_2 given their current ratings.
        Implementations must satisfy predict(a, b) + predict(b, a) == 1.
        """

    @abstractmethod
    def update_ratings_for_period(self, players: Sequence[Player], games: Sequence[Game]):
        """
        Updates the rating of every player in the pool from all of the games of one rating period.

        Parameters:
            players: the rating pool, players without games in the period are treated as idle
            games: the finished games of the period, treated as simultaneous
        """

    def expected_scores(self, players: Sequence[Player]) -> Dict[Hashable, float]:
        """
        Expected share of the pairwise comparisons each player wins, which sums to 1 over the players.
        """
        players = list({player.id: player for player in players}.values())
        if len(players) < 2:
            raise ValueError(f'expected scores need at least 2 distinct players, got {len(players)}')
        num_pairs = len(players) * (len(players) - 1) / 2.0
        expected = {player.id: 0.0 for player in players}
        for player_1, player_2 in combinations(players, 2):
            prob = self.predict(player_1, player_2)
            expected[player_1.id] += prob
            expected[player_2.id] += 1.0 - prob
        return {player_id: total / num_pairs for player_id, total in expected.items()}

    def fit_dataset(self, dataset: GameDataset, return_pre_match_probs: bool = False):
        """
        Replays a dataset through the ruleset, closing one rating period per time step.

        Returns:
            list of dicts, optional: the expected scores of every game computed before its period was applied
        """
        pre_match_probs: List[Dict[Hashable, float]] = []
        for _, rows in tqdm(dataset, total=dataset.num_periods, disable=not dataset.verbose):
            for player_ids, scores in rows:
                players = [self.ruleset.get_or_create_player(player_id) for player_id in player_ids]
                if return_pre_match_probs:
                    pre_match_probs.append(self.expected_scores(players))
                game = self.ruleset.new_game(players, start_immediately=True)
                game.finish(scores)
            self.ruleset.close_period_and_update()
        if return_pre_match_probs:
            return pre_match_probs

    def print_leaderboard(self, num_places=None):
        players = self.ruleset.active_players()
        sort_array = sorted(players, key=lambda p: p.rating - (3.0 * p.deviation), reverse=True)[:num_places]
        max_len = min(max([len(str(player.id)) for player in players] + [10]), 25)
        print(f'{"competitor": <{max_len}}\t{"rating - (3*dev)"}\t')
        for player in sort_array:
            print(f'{str(player.id): <{max_len}}\t{player.rating - (3.0 * player.deviation):.6f}')
