"""
Step 5 of Glicko 2: the new volatility
example: http://www.glicko.net/glicko/glicko2.pdf

The default procedure finds the root of f with the Illinois variant of regula falsi which
halves the retained end point's value whenever the same side is kept twice in a row. The
older procedures from earlier revisions of the paper are kept as alternatives, selected by
name through VOLATILITY_ALGORITHMS.
"""
import logging
import math
from botrate.core.errors import InternalConvergenceError
from botrate.utils.constants import DEFAULT_TOLERANCE, MAX_SOLVER_ITERATIONS

logger = logging.getLogger(__name__)

# number of regula falsi steps taken by the fixed length old procedure
OLD_PROCEDURE_STEPS = 21


def volatility_objective(x, delta2, phi2, v, a, tau2):
    """f(x) from step 5.1, strictly decreasing far enough from a"""
    ex = math.exp(x)
    phi2_v_ex = phi2 + v + ex
    num_1 = ex * (delta2 - phi2_v_ex)
    denom_1 = 2.0 * (phi2_v_ex**2.0)
    term_2 = (x - a) / tau2
    return (num_1 / denom_1) - term_2


def volatility_objective_derivative(x, delta2, phi2, v, tau2):
    """f'(x), used by the Newton based and the old bracketing procedures"""
    ex = math.exp(x)
    d = phi2 + v + ex
    return (
        -1.0 / tau2
        - 0.5 * ex / d
        + 0.5 * ex * (ex + delta2) / (d**2.0)
        - (ex**2.0) * delta2 / (d**3.0)
    )


def _convergence_error(reason, phi, sigma, v, delta, tau):
    return InternalConvergenceError(
        f'volatility solver {reason} (phi={phi!r}, sigma={sigma!r}, v={v!r}, delta={delta!r}, tau={tau!r})'
    )


def _check_sigma(phi, sigma, v, delta, tau):
    if not (math.isfinite(sigma) and sigma > 0.0):
        raise _convergence_error('needs a finite volatility > 0', phi, sigma, v, delta, tau)


def _illinois(phi, sigma, v, delta, tau, tolerance, max_iterations, bracket_term):
    delta2 = delta**2.0
    phi2 = phi**2.0
    tau2 = tau**2.0
    A = a = math.log(sigma**2.0)

    def f(x):
        return volatility_objective(x, delta2, phi2, v, a, tau2)

    if bracket_term > (phi2 + v):
        B = math.log(bracket_term - phi2 - v)
    else:
        k = 1
        while f(a - k * tau) < 0:
            k += 1
            if k > max_iterations:
                raise _convergence_error(
                    f'could not bracket the root within {max_iterations} steps', phi, sigma, v, delta, tau
                )
        B = a - k * tau

    f_A = f(A)
    f_B = f(B)
    iterations = 0
    while math.fabs(B - A) > tolerance:
        iterations += 1
        if iterations > max_iterations:
            raise _convergence_error(f'did not converge within {max_iterations} iterations', phi, sigma, v, delta, tau)
        C = A + ((A - B) * f_A) / (f_B - f_A)
        f_C = f(C)
        if not math.isfinite(f_C):
            raise _convergence_error(f'produced a non-finite iterate {C!r}', phi, sigma, v, delta, tau)
        if (f_C * f_B) <= 0:
            A = B
            f_A = f_B
        else:
            f_A = f_A / 2.0
        B = C
        f_B = f_C
    logger.debug('volatility solver converged after %d iterations', iterations)
    return math.exp(A / 2.0)


def solve_volatility(
    phi: float,
    sigma: float,
    v: float,
    delta: float,
    tau: float,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = MAX_SOLVER_ITERATIONS,
) -> float:
    """
    Computes sigma', the volatility after one rating period.

    Parameters:
        phi (float): pre-period deviation on the glicko2 scale
        sigma (float): pre-period volatility, must be > 0
        v (float): estimated variance of the rating based on the period's outcomes
        delta (float): estimated improvement in rating
        tau (float): system constant constraining the change in volatility
        tolerance (float): stop once the bracket is at most this wide
        max_iterations (int): cap applied separately to the bracket search and to the Illinois loop

    Returns:
        float: the new volatility

    Raises:
        InternalConvergenceError: if sigma is not > 0, if either loop hits max_iterations
            or if an iterate stops being finite
    """
    _check_sigma(phi, sigma, v, delta, tau)
    return _illinois(phi, sigma, v, delta, tau, tolerance, max_iterations, bracket_term=delta**2.0)


def solve_volatility_mod(phi, sigma, v, delta, tau, tolerance=DEFAULT_TOLERANCE, max_iterations=MAX_SOLVER_ITERATIONS):
    """Illinois procedure whose upper bracket compares delta rather than delta^2 against phi^2 + v"""
    _check_sigma(phi, sigma, v, delta, tau)
    return _illinois(phi, sigma, v, delta, tau, tolerance, max_iterations, bracket_term=delta)


def solve_volatility_newton(phi, sigma, v, delta, tau, tolerance=DEFAULT_TOLERANCE, max_iterations=MAX_SOLVER_ITERATIONS):
    """Newton-Raphson on f starting from a = ln(sigma^2), the procedure of the original paper"""
    _check_sigma(phi, sigma, v, delta, tau)
    delta2 = delta**2.0
    phi2 = phi**2.0
    tau2 = tau**2.0
    a = math.log(sigma**2.0)
    x = a
    for iteration in range(1, max_iterations + 1):
        slope = volatility_objective_derivative(x, delta2, phi2, v, tau2)
        if slope == 0.0 or not math.isfinite(slope):
            raise _convergence_error(f'hit a flat or non-finite slope at {x!r}', phi, sigma, v, delta, tau)
        x_new = x - volatility_objective(x, delta2, phi2, v, a, tau2) / slope
        if not math.isfinite(x_new):
            raise _convergence_error(f'produced a non-finite iterate {x_new!r}', phi, sigma, v, delta, tau)
        if math.fabs(x_new - x) <= tolerance:
            logger.debug('newton volatility solver converged after %d iterations', iteration)
            return math.exp(x_new / 2.0)
        x = x_new
    raise _convergence_error(f'did not converge within {max_iterations} iterations', phi, sigma, v, delta, tau)


def solve_volatility_old(phi, sigma, v, delta, tau, tolerance=DEFAULT_TOLERANCE, max_iterations=MAX_SOLVER_ITERATIONS):
    """
    The fixed length procedure of the first Glicko 2 paper.

    Brackets the root of f by stepping down from 0 in unit steps, then takes OLD_PROCEDURE_STEPS
    regula falsi steps. The result is capped by the volatility at which f' changes sign, found
    the same way. tolerance is unused since the number of steps is fixed.
    """
    _check_sigma(phi, sigma, v, delta, tau)
    delta2 = delta**2.0
    phi2 = phi**2.0
    tau2 = tau**2.0
    a = math.log(sigma**2.0)

    def f(x):
        return volatility_objective(x, delta2, phi2, v, a, tau2)

    def df(x):
        return volatility_objective_derivative(x, delta2, phi2, v, tau2)

    def false_position(func, sign):
        """bracket the sign change of func below 0 then refine it, sign is the sign of func at the upper end"""
        x_hi, y_hi = 0.0, func(0.0)
        x_lo = -1.0
        y_lo = func(x_lo)
        steps = 0
        while sign * y_lo > 0:
            steps += 1
            if steps > max_iterations:
                raise _convergence_error(f'could not bracket the root within {max_iterations} steps', phi, sigma, v, delta, tau)
            x_hi, y_hi = x_lo, y_lo
            x_lo -= 1.0
            y_lo = func(x_lo)
        for _ in range(OLD_PROCEDURE_STEPS):
            x_new = y_lo * (x_lo - x_hi) / (y_hi - y_lo) + x_lo
            y_new = func(x_new)
            if not math.isfinite(y_new):
                raise _convergence_error(f'produced a non-finite iterate {x_new!r}', phi, sigma, v, delta, tau)
            if sign * y_new > 0:
                x_hi, y_hi = x_new, y_new
            else:
                x_lo, y_lo = x_new, y_new
        return math.exp((y_lo * (x_lo - x_hi) / (y_hi - y_lo) + x_lo) / 2.0)

    upper = 1.0 if df(0.0) < 0 else false_position(df, 1.0)
    if f(0.0) > 0:
        return upper
    return min(false_position(f, -1.0), upper)


VOLATILITY_ALGORITHMS = {
    'newprocedure': solve_volatility,
    'newprocedure_mod': solve_volatility_mod,
    'oldprocedure': solve_volatility_old,
    'oldprocedure_simple': solve_volatility_newton,
}
