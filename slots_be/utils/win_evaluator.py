"""
Payline and scatter evaluation.

`evaluate_grid` is a pure function of its inputs: it draws nothing from the RNG
and never mutates the grid, so evaluating the same grid twice gives equal
results.
"""
from decimal import ROUND_HALF_UP, Decimal

from slots_be.models import EvaluatedSpin, Position, SymbolId, WinLine


def _is_scatter(symbol, math_spec):
    # The configured bonus symbol and the SCATTER symbol both break lines.
    return symbol == SymbolId.SCATTER or symbol == math_spec.scatter_symbol


def round_currency(amount):
    """Rounds half up to whole currency units."""
    return int(Decimal(str(amount)).to_integral_value(rounding=ROUND_HALF_UP))


def find_scatters(grid, scatter_symbol):
    positions = []
    for reel, column in enumerate(grid):
        for row, symbol in enumerate(column):
            if symbol == scatter_symbol:
                positions.append(Position(reel, row))
    return positions


def _evaluate_payline(grid, payline, bet, math_spec):
    """
    Scores one payline left to right.

    Returns:
        WinLine | None: The win, or None when the line pays nothing.
    """
    reels = min(len(grid), len(payline.rows))
    if reels == 0:
        return None
    path = payline.rows
    symbols = [grid[reel][path[reel]] for reel in range(reels)]

    first = symbols[0]
    if _is_scatter(first, math_spec):
        return None

    base = first
    if first == SymbolId.WILD:
        for symbol in symbols[1:]:
            if _is_scatter(symbol, math_spec):
                break
            if symbol != SymbolId.WILD:
                base = symbol
                break
        if base == SymbolId.WILD and not math_spec.wild_pays_itself:
            return None

    count = 0
    used_wild = False
    positions = []
    for reel, symbol in enumerate(symbols):
        if _is_scatter(symbol, math_spec):
            break
        if symbol == base:
            if base == SymbolId.WILD:
                used_wild = True
        elif math_spec.wild_substitutes and symbol == SymbolId.WILD and base != SymbolId.WILD:
            used_wild = True
        else:
            break
        count += 1
        positions.append(Position(reel, path[reel]))

    if count < 3:
        return None

    pay_count = min(5, count)
    amount = bet * math_spec.payout_multiplier(base, pay_count)
    if amount <= 0:
        return None

    return WinLine(
        line_id=payline.id,
        path_rows=tuple(path),
        symbol=base,
        count=pay_count,
        used_wild=used_wild,
        amount=amount,
        positions=tuple(positions),
    )


def derive_held_reels(grid):
    """A reel is held next spin if any cell of its column is WILD."""
    return tuple(any(symbol == SymbolId.WILD for symbol in column) for column in grid)


def evaluate_grid(grid, bet, math_spec, in_free_spins):
    """
    Scores a stopped grid.

    Args:
        grid (list[list[SymbolId]]): grid[reel][row].
        bet (int): Stake the paytable multipliers apply to.
        math_spec (MathSpec): Resolved math model.
        in_free_spins (bool): Applies the free-spin win multiplier when true.

    Returns:
        EvaluatedSpin: Win lines, rounded total, scatter data and the raw hold
        mask derived from this grid.
    """
    scatter_positions = find_scatters(grid, math_spec.scatter_symbol)
    scatter_count = len(scatter_positions)

    win_lines = []
    line_total = 0
    for payline in math_spec.paylines:
        win_line = _evaluate_payline(grid, payline, bet, math_spec)
        if win_line is not None:
            win_lines.append(win_line)
            line_total += win_line.amount

    scatter_win = 0
    if math_spec.scatter_pays and scatter_count >= 3:
        scatter_win = bet * math_spec.scatter_paytable.get(min(5, scatter_count), 0)

    multiplier = math_spec.free_spins_win_multiplier if in_free_spins else 1
    # Rounded once on the combined total, never per line.
    total = round_currency((line_total + scatter_win) * multiplier)

    return EvaluatedSpin(
        win_amount=total,
        win_lines=tuple(win_lines),
        scatter_count=scatter_count,
        scatter_positions=tuple(scatter_positions),
        scatter_win_amount=scatter_win,
        held_reels_next=derive_held_reels(grid),
    )
