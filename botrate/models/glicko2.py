"""
Glicko 2
paper: http://www.glicko.net/research/dpcmsv.pdf
example: http://www.glicko.net/glicko/glicko2.pdf

"""
import logging
import math
import numpy as np
from botrate.core.base import PeriodRatingSystem
from botrate.models.volatility import VOLATILITY_ALGORITHMS
from botrate.utils.math_utils import (
    expected_score_vector,
    g_scalar,
    g_vector,
    sigmoid_scalar,
    to_external_deviation,
    to_external_rating,
    to_internal_deviation,
    to_internal_rating,
)
from botrate.utils.outcome_utils import aggregate_period

logger = logging.getLogger(__name__)


class Glicko2(PeriodRatingSystem):
    """
    Implements the Glicko 2 rating system, designed by Mark Glickman.

    Every game of a rating period is reduced to pairwise comparisons and all of them are
    applied together: each player's update reads only the ratings snapshotted at the start
    of the period, and nothing is written back until every player's update is computed.
    """

    def predict(self, player_1, player_2):
        """uses the combined deviation of both players so that the two probabilities sum to 1"""
        mu_diff = to_internal_rating(player_1.rating) - to_internal_rating(player_2.rating)
        phi_1 = to_internal_deviation(player_1.deviation)
        phi_2 = to_internal_deviation(player_2.deviation)
        combined_g = g_scalar(math.sqrt(phi_1**2.0 + phi_2**2.0))
        return sigmoid_scalar(combined_g * mu_diff)

    def update_ratings_for_period(self, players, games):
        """apply one update based on all of the results of the rating period"""
        outcomes = []
        for game in games:
            outcomes.extend(game.pairwise_outcomes())
        self.update_ratings_from_matches(players, outcomes)

    def update_ratings_from_matches(self, players, matches):
        """
        Apply one rating period given pairwise comparisons directly.

        Parameters:
            players: the rating pool
            matches: (player_id, opponent_id, score) triples, e.g. from race_to_matches
        """
        players = list(players)
        idx_of = {player.id: idx for idx, player in enumerate(players)}
        if len(idx_of) != len(players):
            raise ValueError('the rating pool contains the same player id more than once')

        # step 2: snapshot every rating on the glicko2 scale before anything changes
        mus = to_internal_rating(np.array([player.rating for player in players], dtype=np.float64))
        phis = to_internal_deviation(np.array([player.deviation for player in players], dtype=np.float64))
        sigmas = np.array([player.volatility for player in players], dtype=np.float64)

        records = aggregate_period(matches)
        for player_id in records:
            if player_id not in idx_of:
                raise ValueError(f'player {player_id!r} played in this rating period but is not in the rating pool')

        new_mus = mus.copy()
        new_phis = np.empty_like(phis)
        new_sigmas = sigmas.copy()
        for idx, player in enumerate(players):
            opponent_records = records.get(player.id)
            if not opponent_records:
                # idle players only grow less certain
                new_phis[idx] = math.sqrt(phis[idx] ** 2.0 + sigmas[idx] ** 2.0)
                continue
            opponent_idxs = np.array([idx_of[opponent_id] for opponent_id in opponent_records])
            scores = np.array([record.relative_score for record in opponent_records.values()])
            counts = np.array([record.count for record in opponent_records.values()], dtype=np.float64)
            new_mus[idx], new_phis[idx], new_sigmas[idx] = self._update_player(
                mu=mus[idx],
                phi=phis[idx],
                sigma=sigmas[idx],
                opponent_mus=mus[opponent_idxs],
                opponent_phis=phis[opponent_idxs],
                scores=scores,
                counts=counts,
            )
            logger.debug(
                'player %r: mu %.6f -> %.6f, phi %.6f -> %.6f, sigma %.6f -> %.6f',
                player.id, mus[idx], new_mus[idx], phis[idx], new_phis[idx], sigmas[idx], new_sigmas[idx],
            )

        # step 8: convert back and commit only once every player has been computed
        new_ratings = to_external_rating(new_mus)
        new_devs = to_external_deviation(new_phis)
        for idx, player in enumerate(players):
            player.rating = float(new_ratings[idx])
            player.deviation = float(new_devs[idx])
            player.volatility = float(new_sigmas[idx])
        logger.info('rating period applied to %d active and %d idle players', len(records), len(players) - len(records))

    def _update_player(self, mu, phi, sigma, opponent_mus, opponent_phis, scores, counts):
        """steps 3 to 7 for a single player, opponents weighted by how many comparisons they contributed"""
        gs = g_vector(opponent_phis)
        probs = expected_score_vector(mu, opponent_mus, gs)

        # step 3
        v = 1.0 / (counts * np.square(gs) * probs * (1.0 - probs)).sum()
        # step 4, this is kinda like a gradient
        grad = (counts * gs * (scores - probs)).sum()
        delta = v * grad

        # step 5
        solve = VOLATILITY_ALGORITHMS[self.ruleset.volatility_algorithm]
        sigma_prime = solve(
            phi=phi,
            sigma=sigma,
            v=v,
            delta=delta,
            tau=self.ruleset.system_tau,
            tolerance=self.ruleset.convergence_tolerance,
            max_iterations=self.ruleset.max_solver_iterations,
        )

        # step 6
        phi_star_squared = phi**2.0 + sigma_prime**2.0
        # step 7
        phi_prime = 1.0 / math.sqrt((1.0 / phi_star_squared) + (1.0 / v))
        mu_prime = mu + (phi_prime**2.0) * grad
        return mu_prime, phi_prime, sigma_prime
