"""mathematical and rating constants computed once here to avoid recomputation"""
import math

# general math constants
PI2 = math.pi**2.0
THREE_OVER_PI_SQUARED = 3.0 / PI2

# glicko2 scale, these cannot be changed
GLICKO2_SCALE_FACTOR = 173.7178
RATING_INTERVAL = 400.0  # only kept for compatibility with the Elo scale
DEFAULT_RATING = 1500.0
DEFAULT_RATING_DEV = 350.0

# glicko2 system defaults
DEFAULT_VOLATILITY = 0.06
DEFAULT_TAU = 0.2
DEFAULT_TOLERANCE = 1e-6
MAX_TAU = 5.0
MAX_TOLERANCE = 1e-6
MAX_SOLVER_ITERATIONS = 10_000
