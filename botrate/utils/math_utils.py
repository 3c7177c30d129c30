"""math utility functions for converting between rating scales and computing glicko2 terms"""
import math
import numpy as np
from scipy.special import expit
from botrate.utils.constants import GLICKO2_SCALE_FACTOR, DEFAULT_RATING, THREE_OVER_PI_SQUARED


def sigmoid(x):
    """a little faster than implementing it in numpy for d < 100000"""
    return expit(x)


def sigmoid_scalar(x):
    """no need to use numpy on scalars"""
    return 1.0 / (1.0 + math.exp(-x))


def to_internal_rating(rating):
    """external scale (centered at 1500) to the glicko2 scale (centered at 0)"""
    return (rating - DEFAULT_RATING) / GLICKO2_SCALE_FACTOR


def to_external_rating(mu):
    return GLICKO2_SCALE_FACTOR * mu + DEFAULT_RATING


def to_internal_deviation(rating_dev):
    """RD to phi"""
    return rating_dev / GLICKO2_SCALE_FACTOR


def to_external_deviation(phi):
    return GLICKO2_SCALE_FACTOR * phi


def g_scalar(phi):
    """
    Damping factor applied to an opponent's rating difference.

    Monotonically decreasing in phi: the less certain an opponent's rating is,
    the less a result against them moves a player's rating.
    """
    return 1.0 / math.sqrt(1.0 + (THREE_OVER_PI_SQUARED * (phi**2.0)))


def g_vector(phi):
    """vector version"""
    return 1.0 / np.sqrt(1.0 + (THREE_OVER_PI_SQUARED * np.square(phi)))


def expected_score(mu, opponent_mu, opponent_g):
    """
    Expected score of a player with internal rating mu against an opponent.

    Parameters:
        mu (float): internal rating of the player
        opponent_mu (float): internal rating of the opponent
        opponent_g (float): g(phi) of the opponent, precomputed since it is reused for every term

    Returns:
        float: the probability of the player beating the opponent
    """
    return sigmoid_scalar(opponent_g * (mu - opponent_mu))


def expected_score_vector(mu, opponent_mus, opponent_gs):
    """vector version, one entry per opponent"""
    return sigmoid(opponent_gs * (mu - opponent_mus))
