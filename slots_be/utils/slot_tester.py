import argparse
import json
import logging

import numpy as np

from slots_be.models import SpinKind
from slots_be.services.presenter import LoggingPresenter, Presenter
from slots_be.services.round_engine import RoundEngine
from slots_be.utils.math_spec import load_math_spec_from_env
from slots_be.utils.rng import create_rng

logger = logging.getLogger(__name__)


class SlotTester:
    """
    Monte Carlo runner for the sticky-hold slot.

    Plays `num_spins` spin requests through the real RoundEngine with zero
    delays and a no-op presenter, or a LoggingPresenter when `verbose` is set.
    Free spins chained by a request are played and counted as part of that
    request's bonus session.
    """

    def __init__(self, num_spins, bet_amount, math_spec=None, seed=None, verbose=False):
        self.num_spins = num_spins
        self.verbose = verbose
        self.bet_amount = bet_amount
        self.math_spec = math_spec
        self.seed = seed

        self.engine = None
        self.session = None

        # Statistics to be collected
        self.spins_played = 0
        self.rounds_played = 0
        self.total_bet = 0
        self.total_win = 0
        self.hit_count = 0
        self.bonus_triggers = 0
        self.total_bonus_win = 0
        self.round_multiples = []  # win / bet for every round, free spins included
        self.bonus_data = []  # one entry per bonus session
        self.wins_by_multiplier = {}
        self.rtp_over_time = []
        self._cumulative = []  # (cumulative_bet, cumulative_win) per request

        # Derived statistics
        self.overall_rtp = 0
        self.hit_frequency = 0
        self.bonus_frequency = 0
        self.avg_bonus_win = 0
        self.base_game_rtp_contribution = 0
        self.bonus_rtp_contribution = 0
        self.volatility_index = 0

    def load_configuration(self, env_file=None):
        if self.math_spec is None:
            self.math_spec = load_math_spec_from_env(env_file)
        return self.math_spec is not None

    def initialize_simulation_state(self):
        seed = self.seed if self.seed is not None else self.math_spec.rng_seed
        self.engine = RoundEngine(
            self.math_spec,
            create_rng(seed),
            presenter=LoggingPresenter(logger) if self.verbose else Presenter(),
            settle_delay=0,
            auto_spin_delay=0,
            sleep=lambda seconds: None,
        )
        # Ample balance; the simulation stops early if it still runs dry.
        initial_balance = self.num_spins * max(1, self.bet_amount) * 10
        self.session = self.engine.new_session(initial_balance, self.bet_amount, session_id='slot-tester')
        if self.session.bet != self.bet_amount:
            logger.warning(f"Bet {self.bet_amount} clamped to {self.session.bet} by the math model bounds.")
            self.bet_amount = self.session.bet

    def run_simulation(self):
        if self.math_spec is None:
            raise RuntimeError("Math model not loaded. Call load_configuration() first.")
        if self.engine is None:
            self.initialize_simulation_state()

        logger.info(f"Starting simulation: {self.num_spins} spins at {self.bet_amount} per spin.")
        progress_every = self.num_spins // 20 or 1
        for i in range(self.num_spins):
            response = self.engine.request_spin(self.session)
            if not response.accepted:
                logger.warning(f"Spin {i + 1} rejected ({response.rejection_reason}). Halting simulation.")
                break
            self._collect_spin_statistics(response)
            if (i + 1) % progress_every == 0:
                logger.info(f"Completed {i + 1}/{self.num_spins} spins...")

        self.calculate_derived_statistics()
        return self.to_dict()

    def _collect_spin_statistics(self, response):
        self.spins_played += 1
        bonus_win = 0
        bonus_spins = 0

        for result in response.rounds:
            self.rounds_played += 1
            self.total_bet += result.debited
            self.total_win += result.win_credited

            if result.kind is SpinKind.FREE:
                bonus_spins += 1
                bonus_win += result.win_credited
            elif result.bonus.total > 0:
                self.bonus_triggers += 1

            multiple = result.win_credited / result.bet if result.bet > 0 else 0
            self.round_multiples.append(multiple)
            category = round(multiple)
            self.wins_by_multiplier[category] = self.wins_by_multiplier.get(category, 0) + 1

        if response.total_win > 0:
            self.hit_count += 1

        if bonus_spins:
            self.bonus_data.append({
                'total_win': bonus_win,
                'num_spins': bonus_spins,
                'trigger_spin_number': self.spins_played,
            })
            self.total_bonus_win += bonus_win

        self._cumulative.append((self.total_bet, self.total_win))

    def calculate_derived_statistics(self):
        if self.spins_played == 0:
            logger.warning("No spins were simulated. Cannot calculate derived statistics.")
            return

        self.overall_rtp = (self.total_win / self.total_bet) * 100 if self.total_bet > 0 else 0
        self.hit_frequency = (self.hit_count / self.spins_played) * 100
        self.bonus_frequency = (self.bonus_triggers / self.spins_played) * 100
        self.avg_bonus_win = (self.total_bonus_win / len(self.bonus_data)) if self.bonus_data else 0

        base_game_win = self.total_win - self.total_bonus_win
        self.base_game_rtp_contribution = (base_game_win / self.total_bet) * 100 if self.total_bet > 0 else 0
        self.bonus_rtp_contribution = (self.total_bonus_win / self.total_bet) * 100 if self.total_bet > 0 else 0

        # Volatility Index: std dev of per-round win in bet multiples
        self.volatility_index = float(np.std(np.asarray(self.round_multiples, dtype=float))) if self.round_multiples else 0

        # RTP Over Time, ~20 points with the last request always captured
        self.rtp_over_time = []
        interval = self.spins_played // 20 or 1
        for i, (cumulative_bet, cumulative_win) in enumerate(self._cumulative):
            if (i + 1) % interval == 0 or (i + 1) == self.spins_played:
                current_rtp = (cumulative_win / cumulative_bet) * 100 if cumulative_bet > 0 else 0
                self.rtp_over_time.append({'spin_count': i + 1, 'rtp': current_rtp})

    def to_dict(self):
        return {
            'spins': self.spins_played,
            'rounds': self.rounds_played,
            'bet': self.bet_amount,
            'total_bet': self.total_bet,
            'total_win': self.total_win,
            'rtp': self.overall_rtp,
            'hit_frequency': self.hit_frequency,
            'bonus_frequency': self.bonus_frequency,
            'bonus_triggers': self.bonus_triggers,
            'avg_bonus_win': self.avg_bonus_win,
            'base_game_rtp_contribution': self.base_game_rtp_contribution,
            'bonus_rtp_contribution': self.bonus_rtp_contribution,
            'volatility_index': self.volatility_index,
            'wins_by_multiplier': {str(k): v for k, v in sorted(self.wins_by_multiplier.items())},
            'rtp_over_time': self.rtp_over_time,
        }

    def print_summary_statistics(self):
        print("\n--- Simulation Summary ---")
        print(f"Layout: {self.math_spec.reels}x{self.math_spec.rows}, {len(self.math_spec.paylines)} paylines")
        print(f"Spin Requests Simulated: {self.spins_played} ({self.rounds_played} rounds incl. free spins)")
        print(f"Bet Amount Per Spin: {self.bet_amount}")
        print(f"Total Wagered: {self.total_bet}")
        print(f"Total Won: {self.total_win}")

        print("\n--- Detailed Metrics ---")
        print(f"Overall RTP: {self.overall_rtp:.2f}%")
        print(f"Hit Frequency: {self.hit_frequency:.2f}% ({self.hit_count} wins out of {self.spins_played} spins)")
        print(f"Bonus Trigger Frequency: {self.bonus_frequency:.2f}% ({self.bonus_triggers} triggers in {self.spins_played} spins)")

        avg_bonus_spins = 0
        if self.bonus_data:
            avg_bonus_spins = sum(b['num_spins'] for b in self.bonus_data) / len(self.bonus_data)
        print(f"Average Bonus Win: {self.avg_bonus_win:.2f} (Total from bonuses: {self.total_bonus_win} from {len(self.bonus_data)} sessions)")
        print(f"Average Spins in Bonus: {avg_bonus_spins:.2f} spins")

        print(f"Base Game RTP Contribution: {self.base_game_rtp_contribution:.2f}%")
        print(f"Bonus Game RTP Contribution: {self.bonus_rtp_contribution:.2f}%")
        print(f"Volatility Index (Win StdDev / Bet): {self.volatility_index:.2f}")

        print("\nWin Distribution (by Bet Multiplier):")
        if self.wins_by_multiplier:
            for mult, count in sorted(self.wins_by_multiplier.items()):
                percentage_of_rounds = (count / self.rounds_played) * 100 if self.rounds_played > 0 else 0
                print(f"  {mult}x Bet: {count} times ({percentage_of_rounds:.2f}%)")
        else:
            print("  No win data to display for multiplier distribution.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Slot Tester - Simulates slot play to analyze RTP and other metrics.")
    parser.add_argument("--spins", type=int, default=10000, help="Number of spin requests to simulate.")
    parser.add_argument("--bet", type=int, default=10, help="Bet amount per paid spin.")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed; defaults to RNG_SEED from the math model.")
    parser.add_argument("--env-file", type=str, default=None, help="Optional .env file with math model keys.")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON.")
    parser.add_argument("--verbose", action="store_true", help="Log bonus awards, hold locks and win presentation per round.")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.WARNING if args.json else logging.INFO)

    tester = SlotTester(num_spins=args.spins, bet_amount=args.bet, seed=args.seed, verbose=args.verbose)
    if not tester.load_configuration(args.env_file):
        return 1
    tester.initialize_simulation_state()
    report = tester.run_simulation()

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        tester.print_summary_statistics()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
