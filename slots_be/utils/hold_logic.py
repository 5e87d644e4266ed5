"""
Sticky reel holds.

A reel whose stopped column shows a WILD is frozen for exactly one following
spin. Holds are decided from the grid that just stopped and are never
accumulated across spins.
"""


def compose_spin_grid(model, previous_grid, held_reels, overrides=None):
    """
    Generates the next grid and re-applies frozen columns.

    A fresh grid is always generated first, whether or not any reel is held,
    so RNG consumption per spin does not depend on hold state.

    Args:
        model (SlotModel): Generator bound to the session RNG and math model.
        previous_grid (list[list] | None): Last stopped grid, grid[reel][row].
        held_reels (list[bool] | None): Reels frozen for this spin.
        overrides (dict | None): Per-call generator overrides.

    Returns:
        list[list]: New grid instance; held columns are copies, never aliases.
    """
    grid = model.spin(overrides)
    if not previous_grid or not held_reels:
        return grid

    for reel in range(len(grid)):
        if reel < len(held_reels) and held_reels[reel] and reel < len(previous_grid):
            grid[reel] = list(previous_grid[reel])
    return grid


def next_hold_mask(held_reels_next, frozen_this_spin, in_free_spins):
    """
    Hold mask for the following spin.

    Inside free spins nothing is held. Otherwise the evaluator's mask is used,
    except that a reel frozen on the spin just played cannot renew its own
    hold; only reels that actually spun can create one.
    """
    reels = len(held_reels_next)
    if in_free_spins:
        return [False] * reels

    mask = list(held_reels_next)
    if frozen_this_spin:
        for reel in range(min(reels, len(frozen_this_spin))):
            if frozen_this_spin[reel]:
                mask[reel] = False
    return mask


def hold_changes(frozen_this_spin, held_next):
    """
    Reels that lock and unlock between this spin and the next.

    Returns:
        tuple[list[int], list[int]]: (newly_locked, unlocked) reel indexes.
    """
    frozen = list(frozen_this_spin or [])
    frozen += [False] * (len(held_next) - len(frozen))
    newly_locked = [reel for reel, held in enumerate(held_next) if held and not frozen[reel]]
    unlocked = [reel for reel, held in enumerate(held_next) if frozen[reel] and not held]
    return newly_locked, unlocked


def format_reels(mask):
    """1-based reel numbers for logs and display, e.g. '2,4' or '-'."""
    reels = [str(reel + 1) for reel, held in enumerate(mask or []) if held]
    return ','.join(reels) if reels else '-'
