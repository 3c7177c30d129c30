"""exceptions raised by the rating engine, all of them are logic errors and none are retryable"""


class RatingError(Exception):
    """base class for every error raised by botrate"""


class InvalidConfigurationError(RatingError, ValueError):
    """a ruleset option is outside of its accepted range"""

    def __init__(self, option, value, expected):
        self.option = option
        self.value = value
        super().__init__(f'invalid {option}={value!r}, expected {expected}')


class DegenerateOutcomeError(RatingError):
    """both participants of a pairwise comparison scored zero so their relative score is undefined"""

    def __init__(self, player_a, player_b, game_id=None):
        self.player_a = player_a
        self.player_b = player_b
        self.game_id = game_id
        where = f' in game {game_id!r}' if game_id is not None else ''
        super().__init__(f'players {player_a!r} and {player_b!r} both scored 0{where}, relative score is undefined')


class NonDeterministicResultError(RatingError):
    """a deterministic matchup was recorded twice with different results"""

    def __init__(self, matchup, game_id, previous_game_id, result, previous_result):
        self.matchup = matchup
        self.game_id = game_id
        self.previous_game_id = previous_game_id
        super().__init__(
            f'matchup {matchup!r} is deterministic but game {game_id!r} produced {result!r} '
            f'while game {previous_game_id!r} produced {previous_result!r}'
        )


class InternalConvergenceError(RatingError):
    """the volatility solver did not converge within its iteration cap"""


class InvalidStateTransition(RatingError):
    """a game was started, finished or applied to a rating period more than once, or finished before it started"""
