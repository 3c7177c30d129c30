"""rating configuration plus the registry of players, bots and games it governs"""
import logging
import math
from itertools import count
from typing import Dict, Hashable, Iterable, List, Optional, Sequence
from botrate.core.entities import Bot, Game, Player
from botrate.core.errors import InvalidConfigurationError, InvalidStateTransition, NonDeterministicResultError
from botrate.models.glicko2 import Glicko2
from botrate.models.volatility import VOLATILITY_ALGORITHMS
from botrate.utils.constants import (
    DEFAULT_RATING,
    DEFAULT_RATING_DEV,
    DEFAULT_TAU,
    DEFAULT_TOLERANCE,
    DEFAULT_VOLATILITY,
    GLICKO2_SCALE_FACTOR,
    MAX_SOLVER_ITERATIONS,
    MAX_TAU,
    MAX_TOLERANCE,
    RATING_INTERVAL,
)

logger = logging.getLogger(__name__)


class Ruleset:
    """
    Owns everything a rating pool needs: configuration, players, games, id counters and
    the finished games waiting for the next rating period.

    Parameters:
        rating_volatility (float): initial volatility of new players. Defaults to 0.06.
        system_tau (float): constrains the change in volatility over time, in (0, 5). Defaults to 0.2.
        convergence_tolerance (float): volatility solver tolerance, in (0, 1e-6]. Defaults to 1e-6.
        order_matters (bool): whether the slot order of a game distinguishes matchups. Defaults to False.
        deterministic (bool): whether identical matchups must always produce identical results. Defaults to False.
        max_solver_iterations (int): iteration cap of the volatility solver.
        volatility_algorithm (str): step 5 procedure, one of 'newprocedure' (Illinois, the default),
            'newprocedure_mod', 'oldprocedure' or 'oldprocedure_simple' (Newton).
    """

    glicko2_scale_factor = GLICKO2_SCALE_FACTOR
    rating_interval = RATING_INTERVAL
    rating_value = DEFAULT_RATING
    rating_deviation = DEFAULT_RATING_DEV

    def __init__(
        self,
        rating_volatility: float = DEFAULT_VOLATILITY,
        system_tau: float = DEFAULT_TAU,
        convergence_tolerance: float = DEFAULT_TOLERANCE,
        order_matters: bool = False,
        deterministic: bool = False,
        max_solver_iterations: int = MAX_SOLVER_ITERATIONS,
        volatility_algorithm: str = 'newprocedure',
    ):
        if not (math.isfinite(rating_volatility) and rating_volatility > 0.0):
            raise InvalidConfigurationError('rating_volatility', rating_volatility, 'a finite value > 0')
        if not (0.0 < system_tau < MAX_TAU):
            raise InvalidConfigurationError('system_tau', system_tau, f'a value in (0, {MAX_TAU})')
        if not (0.0 < convergence_tolerance <= MAX_TOLERANCE):
            raise InvalidConfigurationError('convergence_tolerance', convergence_tolerance, f'a value in (0, {MAX_TOLERANCE}]')
        if max_solver_iterations < 1:
            raise InvalidConfigurationError('max_solver_iterations', max_solver_iterations, 'a positive integer')
        if volatility_algorithm not in VOLATILITY_ALGORITHMS:
            raise InvalidConfigurationError('volatility_algorithm', volatility_algorithm, f'one of {sorted(VOLATILITY_ALGORITHMS)}')
        self.rating_volatility = rating_volatility
        self.system_tau = system_tau
        self.convergence_tolerance = convergence_tolerance
        self.order_matters = order_matters
        self.deterministic = deterministic
        self.max_solver_iterations = max_solver_iterations
        self.volatility_algorithm = volatility_algorithm

        self.players: Dict[Hashable, Player] = {}
        self.bots: Dict[Hashable, Bot] = {}
        self.games: Dict[Hashable, Game] = {}
        self.pending_games: List[Game] = []
        self._superseded = set()
        self._known_results = {}
        self._player_ids = count()
        self._game_ids = count()
        self._lineage_ids = count()
        self.num_periods = 0

        self.rating_system = Glicko2(self)

    @staticmethod
    def _next_free(counter, taken):
        while True:
            candidate = next(counter)
            if candidate not in taken:
                return candidate

    def new_player(
        self,
        player_id: Optional[Hashable] = None,
        lineage: Optional[Hashable] = None,
        version: Optional[str] = None,
        previous: Optional[Player] = None,
    ) -> Player:
        if player_id is None:
            player_id = self._next_free(self._player_ids, self.players)
        elif player_id in self.players:
            raise ValueError(f'player id {player_id!r} already exists')
        player = Player(
            player_id,
            rating=self.rating_value,
            deviation=self.rating_deviation,
            volatility=self.rating_volatility,
            lineage=lineage,
            version=version,
            previous=previous,
        )
        if previous is not None:
            self._superseded.add(previous.id)
        self.players[player_id] = player
        return player

    def get_or_create_player(self, player_id: Hashable) -> Player:
        if player_id in self.players:
            return self.players[player_id]
        return self.new_player(player_id)

    def new_bot(self, lineage: Optional[Hashable] = None, version: str = '0.1.0') -> Bot:
        if lineage is None:
            lineage = self._next_free(self._lineage_ids, self.bots)
        elif lineage in self.bots:
            raise ValueError(f'bot lineage {lineage!r} already exists')
        bot = Bot(self, lineage, version)
        self.bots[lineage] = bot
        return bot

    def new_game(
        self, players: Sequence[Player], game_id: Optional[Hashable] = None, start_immediately: bool = False
    ) -> Game:
        if game_id is None:
            game_id = self._next_free(self._game_ids, self.games)
        elif game_id in self.games:
            raise ValueError(f'game id {game_id!r} already exists')
        for player in players:
            if self.players.get(player.id) is not player:
                raise ValueError(f'player {player.id!r} does not belong to this ruleset')
        game = Game(self, game_id, players, start_immediately=start_immediately)
        self.games[game_id] = game
        return game

    def active_players(self) -> List[Player]:
        """every player except bot versions that have been superseded"""
        return [player for player_id, player in self.players.items() if player_id not in self._superseded]

    def matchup_key(self, game: Game):
        ids = game.participant_ids
        if self.order_matters:
            return ids
        return tuple(sorted(ids, key=repr))

    def check_deterministic(self, game: Game, result: Dict[Hashable, float]):
        """raise if a deterministic matchup already produced a different result"""
        if not self.deterministic:
            return
        key = self.matchup_key(game)
        if key not in self._known_results:
            self._known_results[key] = (game.id, result)
            return
        previous_game_id, previous_result = self._known_results[key]
        agrees = previous_result.keys() == result.keys() and all(
            math.isclose(previous_result[player_id], result[player_id], rel_tol=1e-9, abs_tol=1e-12)
            for player_id in result
        )
        if not agrees:
            raise NonDeterministicResultError(key, game.id, previous_game_id, result, previous_result)

    def record_finished(self, game: Game):
        self.pending_games.append(game)

    def close_period_and_update(self, games: Optional[Iterable[Game]] = None):
        """
        Applies one rating period.

        Parameters:
            games (optional): the finished games of the period, defaults to every game finished since the last period

        The pool is every active player plus every participant of the period's games. If the
        update raises, no rating changes and the pending games stay queued. A game can only be
        applied in one rating period.
        """
        games = list(self.pending_games if games is None else games)
        seen = set()
        for game in games:
            if game.rating_period is not None:
                raise InvalidStateTransition(f'game {game.id!r} was already applied in rating period {game.rating_period}')
            if id(game) in seen:
                raise InvalidStateTransition(f'game {game.id!r} appears more than once in the rating period')
            seen.add(id(game))
        pool = {player.id: player for player in self.active_players()}
        for game in games:
            for player in game.players:
                pool.setdefault(player.id, player)
        self.rating_system.update_ratings_for_period(list(pool.values()), games)
        for game in games:
            game.rating_period = self.num_periods
        self.num_periods += 1
        self.pending_games = [game for game in self.pending_games if id(game) not in seen]
        logger.info('closed rating period with %d games over %d players', len(games), len(pool))
