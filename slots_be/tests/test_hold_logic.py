import unittest

from slots_be.models import SymbolId
from slots_be.utils.hold_logic import compose_spin_grid, format_reels, hold_changes, next_hold_mask
from slots_be.tests.helpers import ScriptedModel, dead_grid, grid_from_rows

W, K, Q = SymbolId.WILD, SymbolId.K, SymbolId.Q


class TestComposeSpinGrid(unittest.TestCase):

    def setUp(self):
        self.previous = grid_from_rows(
            "WILD A A A A",
            "K A A A A",
            "Q A A A A",
        )

    def test_held_reel_is_copied_from_previous_grid(self):
        model = ScriptedModel([dead_grid()])
        grid = compose_spin_grid(model, self.previous, [True, False, False, False, False])

        self.assertEqual(grid[0], [W, K, Q])
        self.assertEqual(grid[1:], dead_grid()[1:])
        # Copied, never aliased
        self.assertIsNot(grid[0], self.previous[0])
        grid[0][0] = SymbolId.A
        self.assertEqual(self.previous[0][0], W)

    def test_always_spins_even_when_held(self):
        model = ScriptedModel([dead_grid()])
        compose_spin_grid(model, self.previous, [True] * 5)
        self.assertEqual(model.spins, 1)

    def test_no_previous_grid_means_fresh_grid(self):
        model = ScriptedModel([dead_grid()])
        self.assertEqual(compose_spin_grid(model, None, [True] * 5), dead_grid())

    def test_overrides_reach_the_model(self):
        model = ScriptedModel([dead_grid()])
        compose_spin_grid(model, None, None, {'hit_rate': 1.0})
        self.assertEqual(model.overrides_seen, [{'hit_rate': 1.0}])


class TestHoldMask(unittest.TestCase):

    def test_frozen_reel_cannot_renew_itself(self):
        mask = next_hold_mask((True, True, False, False, False), [True, False, False, False, False], False)
        self.assertEqual(mask, [False, True, False, False, False])

    def test_nothing_held_inside_free_spins(self):
        mask = next_hold_mask((True, True, True, False, False), None, True)
        self.assertEqual(mask, [False] * 5)

    def test_hold_changes(self):
        newly_locked, unlocked = hold_changes([True, False, False, False, False], [False, True, False, True, False])
        self.assertEqual(newly_locked, [1, 3])
        self.assertEqual(unlocked, [0])

    def test_hold_changes_without_previous_mask(self):
        self.assertEqual(hold_changes(None, [False, True]), ([1], []))

    def test_format_reels(self):
        self.assertEqual(format_reels([False, True, False, True, False]), "2,4")
        self.assertEqual(format_reels([False] * 5), "-")
        self.assertEqual(format_reels(None), "-")


if __name__ == '__main__':
    unittest.main()
