"""players, versioned bots and games tracked by a ruleset"""
import math
import time
from typing import Hashable, List, Optional, Sequence
from botrate.core.errors import InvalidStateTransition
from botrate.utils.constants import DEFAULT_RATING, DEFAULT_RATING_DEV, DEFAULT_VOLATILITY
from botrate.utils.outcome_utils import pairwise_outcomes, scores_to_result


class Player:
    """
    A rated competitor.

    The identity fields are fixed at construction. The rating triple (rating, deviation,
    volatility) is on the external scale and is only ever rewritten by a rating system at
    the close of a rating period.

    Attributes:
        id: opaque comparable key, unique within its ruleset
        lineage: key shared by every version of the same bot, None for plain players
        version: label of the bot version this record represents
        previous (Player): the record this one superseded, if any
        games (list): every game this player took part in
    """

    def __init__(
        self,
        player_id: Hashable,
        rating: float = DEFAULT_RATING,
        deviation: float = DEFAULT_RATING_DEV,
        volatility: float = DEFAULT_VOLATILITY,
        lineage: Optional[Hashable] = None,
        version: Optional[str] = None,
        previous: Optional['Player'] = None,
    ):
        if not math.isfinite(rating):
            raise ValueError(f'rating of player {player_id!r} must be finite, got {rating!r}')
        if not math.isfinite(deviation) or deviation < 0.0:
            raise ValueError(f'deviation of player {player_id!r} must be finite and >= 0, got {deviation!r}')
        if not math.isfinite(volatility) or volatility <= 0.0:
            raise ValueError(f'volatility of player {player_id!r} must be finite and > 0, got {volatility!r}')
        self.id = player_id
        self.lineage = lineage
        self.version = version
        self.previous = previous
        self.rating = float(rating)
        self.deviation = float(deviation)
        self.volatility = float(volatility)
        self.games = []

    @property
    def rating_triple(self):
        return self.rating, self.deviation, self.volatility

    def __repr__(self):
        return (
            f'Player(id={self.id!r}, rating={self.rating:.2f}, deviation={self.deviation:.2f}, '
            f'volatility={self.volatility:.6f})'
        )


class Bot:
    """
    A bot whose versions are rated independently.

    Every version is its own Player record with a fresh rating, linked to the others by the
    lineage key and to its predecessor by Player.previous. Records are appended, never replaced.
    """

    def __init__(self, ruleset, lineage: Hashable, version: str):
        self.ruleset = ruleset
        self.lineage = lineage
        self.versions: List[Player] = []
        self.new_version(version)

    @property
    def current(self) -> Player:
        return self.versions[-1]

    @property
    def version(self) -> str:
        return self.current.version

    def new_version(self, version: str) -> Player:
        """start rating a new version of this bot from the default rating"""
        previous = self.versions[-1] if self.versions else None
        player = self.ruleset.new_player(lineage=self.lineage, version=version, previous=previous)
        self.versions.append(player)
        return player

    def __repr__(self):
        return f'Bot(lineage={self.lineage!r}, version={self.version!r}, current={self.current!r})'


class Game:
    """
    A game between two or more player slots.

    A game is started once and finished once, in that order. Finishing records a result
    mapping each distinct player id to the mean of its slot scores and queues the game for
    the ruleset's current rating period.
    """

    def __init__(self, ruleset, game_id: Hashable, players: Sequence[Player], start_immediately: bool = False):
        if len(players) < 2:
            raise ValueError(f'game {game_id!r} needs at least 2 player slots, got {len(players)}')
        self.ruleset = ruleset
        self.id = game_id
        self.players = tuple(players)
        self.start_time = None
        self.finish_time = None
        self.result = None
        self.rating_period = None
        for player in self.players:
            if self not in player.games:
                player.games.append(self)
        if start_immediately:
            self.start()

    @property
    def participant_ids(self):
        return tuple(player.id for player in self.players)

    @property
    def is_finished(self) -> bool:
        return self.finish_time is not None

    def start(self, timestamp: Optional[float] = None) -> float:
        if self.start_time is not None:
            raise InvalidStateTransition(f'game {self.id!r} already started')
        self.start_time = time.time() if timestamp is None else timestamp
        return self.start_time

    def finish(self, scores: Sequence[float], timestamp: Optional[float] = None) -> float:
        """
        Records the result of the game.

        Parameters:
            scores: one score per player slot, in the same order as players
            timestamp (float, optional): finish time, defaults to now

        Returns:
            float: the finish time
        """
        if self.start_time is None:
            raise InvalidStateTransition(f'game {self.id!r} cannot finish before it starts')
        if self.finish_time is not None:
            raise InvalidStateTransition(f'game {self.id!r} already finished')
        result = scores_to_result(self.participant_ids, scores)
        pairwise_outcomes(result, game_id=self.id)  # every pair must have a defined relative score
        self.ruleset.check_deterministic(self, result)
        self.result = result
        self.finish_time = time.time() if timestamp is None else timestamp
        self.ruleset.record_finished(self)
        return self.finish_time

    def pairwise_outcomes(self):
        if self.result is None:
            raise InvalidStateTransition(f'game {self.id!r} has no result yet')
        return pairwise_outcomes(self.result, game_id=self.id)

    def __repr__(self):
        return f'Game(id={self.id!r}, players={self.participant_ids!r}, result={self.result!r})'
