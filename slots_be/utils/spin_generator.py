"""
Weighted grid generation with hit-rate and bonus-frequency biasing.

Every draw comes from the single `rng` callable in a fixed order, so a seeded
RNG reproduces the same grids spin after spin.
"""
import logging

from slots_be.models import GeneratedSpin, SymbolId

logger = logging.getLogger(__name__)

MATCH_COUNT_WEIGHTS = ((3, 82), (4, 16), (5, 2))
FORCED_SYMBOL_TRIES = 10
DIFFERENT_SYMBOL_TRIES = 20
FORCE_SCATTER_BUDGET = 200
LIMIT_SCATTER_BUDGET = 300


def generate_spin(rng, math_spec, reels, rows, overrides=None):
    """
    Generates one biased grid.

    The forced-scatter and forced-win decisions are drawn before the grid is
    built and do not depend on its content. QA flags skip the draw entirely.

    Args:
        rng (callable): Zero-argument uniform [0, 1) source.
        math_spec (MathSpec): Resolved math model.
        reels (int): Column count.
        rows (int): Row count.
        overrides (dict | None): Optional per-call 'hit_rate' and
            'bonus_target_frequency'.

    Returns:
        GeneratedSpin: grid[reel][row] plus the two bias decisions.
    """
    overrides = overrides or {}
    hit_rate = overrides.get('hit_rate', math_spec.hit_rate)
    bonus_frequency = overrides.get('bonus_target_frequency', math_spec.bonus_target_frequency)

    force_scatter = math_spec.qa_force_bonus or rng() < bonus_frequency
    force_win = math_spec.qa_force_win or rng() < hit_rate

    grid = create_weighted_grid(rng, math_spec, reels, rows)

    if math_spec.qa_force_symbol:
        for reel in range(reels):
            for row in range(rows):
                grid[reel][row] = math_spec.qa_force_symbol

    if force_win:
        apply_forced_win_line(rng, math_spec, grid)
    else:
        break_accidental_wins(rng, math_spec, grid)

    if force_scatter:
        apply_forced_scatter(rng, math_spec, grid, math_spec.bonus_trigger_count)
    else:
        limit_scatter_below(rng, math_spec, grid, math_spec.bonus_trigger_count)

    return GeneratedSpin(grid=grid, forced_win=force_win, forced_scatter=force_scatter)


def create_weighted_grid(rng, math_spec, reels, rows):
    return [[pick_weighted_symbol(rng, math_spec) for _ in range(rows)] for _ in range(reels)]


def pick_weighted_symbol(rng, math_spec):
    """Roulette-wheel pick over `math_spec.symbols` in declared order."""
    symbols = math_spec.symbols
    weights = math_spec.weights
    total = sum(weights.get(symbol, 0) for symbol in symbols)
    roll = rng() * total
    for symbol in symbols:
        roll -= weights.get(symbol, 0)
        if roll <= 0:
            return symbol
    # Floating error can exhaust the loop without a hit.
    return symbols[-1] if symbols else SymbolId.A


def pick_match_count(rng):
    total = sum(weight for _, weight in MATCH_COUNT_WEIGHTS)
    roll = rng() * total
    for count, weight in MATCH_COUNT_WEIGHTS:
        roll -= weight
        if roll <= 0:
            return count
    return MATCH_COUNT_WEIGHTS[-1][0]


def apply_forced_win_line(rng, math_spec, grid):
    """
    Overwrites the leftmost reels of one row with a regular symbol.

    Wilds are never injected here: a forced wild would create sticky holds far
    more often than the weight table implies. The line is not cleaned
    afterwards, so other accidental wins may remain on the grid.
    """
    reels = len(grid)
    rows = len(grid[0])

    row = int(rng() * rows)
    count = pick_match_count(rng)

    symbol = SymbolId.A
    for _ in range(FORCED_SYMBOL_TRIES):
        candidate = pick_weighted_symbol(rng, math_spec)
        if candidate != math_spec.scatter_symbol and candidate != SymbolId.WILD:
            symbol = candidate
            break

    for reel in range(min(reels, count)):
        grid[reel][row] = symbol


def break_accidental_wins(rng, math_spec, grid):
    """Breaks any 3+ run from reel 0 by replacing the third reel's cell."""
    reels = len(grid)
    rows = len(grid[0])
    break_reel = 2

    for row in range(rows):
        first = grid[0][row]
        if first == math_spec.scatter_symbol:
            continue
        count = 1
        for reel in range(1, reels):
            if grid[reel][row] == first:
                count += 1
            else:
                break
        if count >= 3:
            grid[break_reel][row] = pick_different_non_scatter(rng, math_spec, first)


def pick_different_non_scatter(rng, math_spec, not_this):
    for _ in range(DIFFERENT_SYMBOL_TRIES):
        candidate = pick_weighted_symbol(rng, math_spec)
        if candidate != math_spec.scatter_symbol and candidate != not_this:
            return candidate
    return SymbolId.K if not_this == SymbolId.A else SymbolId.A


def count_scatter(grid, scatter_symbol):
    return sum(1 for column in grid for symbol in column if symbol == scatter_symbol)


def apply_forced_scatter(rng, math_spec, grid, desired):
    reels = len(grid)
    rows = len(grid[0])
    scatter = math_spec.scatter_symbol

    count = count_scatter(grid, scatter)
    guard = 0
    while count < desired and guard < FORCE_SCATTER_BUDGET:
        guard += 1
        reel = int(rng() * reels)
        row = int(rng() * rows)
        if grid[reel][row] != scatter:
            grid[reel][row] = scatter
            count += 1
    if count < desired:
        logger.debug(f"Forced scatter budget exhausted at {count}/{desired} scatters.")


def limit_scatter_below(rng, math_spec, grid, limit):
    scatter = math_spec.scatter_symbol
    count = count_scatter(grid, scatter)
    if count < limit:
        return

    reels = len(grid)
    rows = len(grid[0])
    guard = 0
    while count >= limit and guard < LIMIT_SCATTER_BUDGET:
        guard += 1
        reel = int(rng() * reels)
        row = int(rng() * rows)
        if grid[reel][row] == scatter:
            grid[reel][row] = pick_different_non_scatter(rng, math_spec, scatter)
            count -= 1
    if count >= limit:
        logger.debug(f"Scatter limiting budget exhausted with {count} scatters left (limit {limit}).")


class SlotModel:
    """Binds an RNG stream and a math model to the configured layout."""

    def __init__(self, rng, math_spec):
        self.rng = rng
        self.math_spec = math_spec

    def spin(self, overrides=None):
        return generate_spin(self.rng, self.math_spec, self.math_spec.reels, self.math_spec.rows, overrides).grid
