"""Shared builders for the slot engine tests."""
from dataclasses import replace

from slots_be.models import SymbolId
from slots_be.utils.math_spec import load_math_spec


def make_math_spec(**overrides):
    """Default math model with selected fields replaced."""
    return replace(load_math_spec({}), **overrides)


def sym(token):
    return SymbolId(token)


def grid_from_rows(*rows):
    """
    Builds grid[reel][row] from rows written top to bottom, e.g.
    grid_from_rows("K Q J T K", "A A A A A", "Q J T K Q").
    """
    parsed = [[sym(token) for token in row.split()] for row in rows]
    reels = len(parsed[0])
    return [[parsed[row][reel] for row in range(len(parsed))] for reel in range(reels)]


def dead_grid():
    """5x3 grid with no line win, no wild and no scatter."""
    return grid_from_rows(
        "A K Q J T",
        "Q J T A K",
        "T A K Q J",
    )


class ScriptedRng:
    """RNG double replaying fixed values, then repeating `fallback`."""

    def __init__(self, values, fallback=0.5):
        self.values = list(values)
        self.fallback = fallback
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        return self.fallback


class ScriptedModel:
    """Stands in for SlotModel and hands out prepared grids in order."""

    def __init__(self, grids):
        self.grids = list(grids)
        self.spins = 0
        self.overrides_seen = []

    def spin(self, overrides=None):
        self.spins += 1
        self.overrides_seen.append(overrides)
        if not self.grids:
            return dead_grid()
        return [list(column) for column in self.grids.pop(0)]
