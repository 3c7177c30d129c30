"""functions for reducing multi-player game outcomes to pairwise comparisons"""
import math
from dataclasses import dataclass
from typing import Dict, Hashable, List, Sequence, Tuple
from botrate.core.errors import DegenerateOutcomeError

# (player, opponent, score of player relative to opponent)
PairwiseOutcome = Tuple[Hashable, Hashable, float]


@dataclass
class PeriodRecord:
    """accumulated results of one player against one opponent within a rating period"""

    own_total: float = 0.0
    opponent_total: float = 0.0
    count: int = 0

    @property
    def relative_score(self) -> float:
        return self.own_total / (self.own_total + self.opponent_total)


def scores_to_result(player_ids: Sequence[Hashable], scores: Sequence[float]) -> Dict[Hashable, float]:
    """
    Maps each distinct player to the mean of their score entries.

    Players may occupy several slots (e.g. multiple entries in one race). Scores are
    not normalized here, they only need to be finite and non-negative.
    """
    if len(player_ids) != len(scores):
        raise ValueError(f'got {len(scores)} scores for {len(player_ids)} player slots')
    totals = {}
    counts = {}
    for player_id, score in zip(player_ids, scores):
        score = float(score)
        if not math.isfinite(score) or score < 0.0:
            raise ValueError(f'score for player {player_id!r} must be finite and non-negative, got {score!r}')
        totals[player_id] = totals.get(player_id, 0.0) + score
        counts[player_id] = counts.get(player_id, 0) + 1
    return {player_id: totals[player_id] / counts[player_id] for player_id in totals}


def relative_score(score_a, score_b, player_a=None, player_b=None, game_id=None):
    """s_AB = score_a / (score_a + score_b)"""
    total = score_a + score_b
    if total == 0.0:
        raise DegenerateOutcomeError(player_a, player_b, game_id)
    return score_a / total


def pairwise_outcomes(result: Dict[Hashable, float], game_id=None) -> List[PairwiseOutcome]:
    """every unordered pair of participants treated as an independent binary comparison"""
    player_ids = list(result)
    outcomes = []
    for i, player_a in enumerate(player_ids):
        for player_b in player_ids[i + 1 :]:
            s_ab = relative_score(result[player_a], result[player_b], player_a, player_b, game_id)
            outcomes.append((player_a, player_b, s_ab))
    return outcomes


def race_to_matches(ranks: Sequence[Sequence[Hashable]]) -> List[PairwiseOutcome]:
    """
    Rank based alternative to pairwise_outcomes for races.

    Parameters:
        ranks: ordered from first place to last, each entry is the group of players tied at that place

    Returns:
        list of (player, opponent, score) where a better place scores 1.0 and a tie scores 0.5
    """
    placed = [(player, place) for place, rank in enumerate(ranks) for player in rank]
    matches = []
    for i, (player_1, place_1) in enumerate(placed):
        for player_2, place_2 in placed[i + 1 :]:
            if player_1 == player_2:
                continue
            matches.append((player_1, player_2, 1.0 if place_1 < place_2 else 0.5))
    return matches


def aggregate_period(outcomes) -> Dict[Hashable, Dict[Hashable, PeriodRecord]]:
    """
    Accumulates the pairwise outcomes of a whole rating period per player and opponent.

    Each comparison adds its score to both sides so that a player's relative score against
    an opponent over the period is the ratio of the summed scores.
    """
    records = {}
    for player_a, player_b, s_ab in outcomes:
        record_a = records.setdefault(player_a, {}).setdefault(player_b, PeriodRecord())
        record_b = records.setdefault(player_b, {}).setdefault(player_a, PeriodRecord())
        record_a.own_total += s_ab
        record_a.opponent_total += 1.0 - s_ab
        record_a.count += 1
        record_b.own_total += 1.0 - s_ab
        record_b.opponent_total += s_ab
        record_b.count += 1
    return records
