"""
Round orchestration for a single sticky-hold slot session.

The engine is the only code that mutates a `RoundSession`. A round walks the
session state machine IDLE -> SPINNING -> RESULT -> (BONUS) -> WIN_PRESENTATION
-> IDLE, debits at most once and credits at most once. Free spins awarded on
the way are played back to back inside the same `request_spin` call.
"""
import logging
import math
import time

from slots_be.models import RoundResult, RoundSession, SlotState, SpinKind, SpinResponse
from slots_be.utils.bonus import calculate_free_spins_award
from slots_be.utils.hold_logic import compose_spin_grid, format_reels, hold_changes, next_hold_mask
from slots_be.utils.spin_generator import SlotModel
from slots_be.utils.win_evaluator import evaluate_grid

from .presenter import Presenter

logger = logging.getLogger(__name__)

REJECT_INSUFFICIENT_BALANCE = 'insufficient_balance'
REJECT_ROUND_IN_PROGRESS = 'round_in_progress'


def clamp_to_step(value, minimum, maximum, step):
    """Clamps `value` into [minimum, maximum] and rounds half up to a multiple of `step`."""
    step = max(1, int(step))
    clamped = max(minimum, min(maximum, value))
    snapped = math.floor(clamped / step + 0.5) * step
    # Keep the snapped value inside the bounds when they are not step multiples.
    if snapped > maximum:
        snapped -= step
    if snapped < minimum:
        snapped += step
    return int(max(minimum, min(maximum, snapped)))


def build_round_summary(kind, bet, evaluation, balance, held_next):
    """One-line HUD text, e.g. 'BET -10 • WIN +20 • BAL 1010 • L1 Ax3 +WILD • HOLD 2,4'."""
    if kind is SpinKind.FREE:
        parts = ['FREE SPIN']
    elif kind is SpinKind.RESPIN:
        parts = ['RESPIN']
    else:
        parts = [f"BET -{bet}"]
    parts.append(f"WIN +{evaluation.win_amount}")
    parts.append(f"BAL {balance}")

    if evaluation.win_lines:
        first = evaluation.win_lines[0]
        parts.append(f"L{first.line_id} {first.symbol}x{first.count}{' +WILD' if first.used_wild else ''}")
    elif evaluation.scatter_win_amount > 0:
        parts.append(f"SCATTER x{evaluation.scatter_count}")

    if any(held_next):
        parts.append(f"HOLD {format_reels(held_next)}")
    return ' • '.join(parts)


class RoundEngine:
    """
    Drives rounds for sessions that share one math model and one RNG stream.

    Args:
        math_spec (MathSpec): Resolved, immutable math model.
        rng (callable): Zero-argument uniform [0, 1) source.
        presenter (Presenter | None): Presentation collaborator; a no-op one
            is used when omitted.
        settle_delay (float): Pause in seconds after the win is credited.
        auto_spin_delay (float): Pause before each chained free spin.
        sleep (callable): Delay function, `time.sleep` unless injected.
    """

    def __init__(self, math_spec, rng, presenter=None, settle_delay=0.35, auto_spin_delay=0.35, sleep=time.sleep):
        self.math_spec = math_spec
        self.rng = rng
        self.model = SlotModel(rng, math_spec)
        self.presenter = presenter or Presenter()
        self.settle_delay = settle_delay
        self.auto_spin_delay = auto_spin_delay
        self.sleep = sleep
        self._spin_seq = 0

    # Session lifecycle

    def new_session(self, balance, bet=None, session_id=None):
        spec = self.math_spec
        start_bet = clamp_to_step(spec.bet_min if bet is None else int(bet), spec.bet_min, spec.bet_max, spec.bet_step)
        session = RoundSession(balance=int(balance), bet=start_bet, session_id=session_id)
        session.machine.subscribe(lambda previous, current: self._sync(session))
        logger.info(f"New slot session {session_id or '-'}: balance={session.balance} bet={session.bet}")
        return session

    def change_bet(self, session, delta):
        """
        Steps the bet by `delta`, clamped to the configured bounds and step.

        Bets are locked while a round is in flight and during free spins.

        Returns:
            bool: True when the bet actually changed.
        """
        return self.set_bet(session, session.bet + int(delta))

    def set_bet(self, session, bet):
        if not self.can_change_bet(session):
            return False
        spec = self.math_spec
        next_bet = clamp_to_step(int(bet), spec.bet_min, spec.bet_max, spec.bet_step)
        if next_bet == session.bet:
            return False
        session.bet = next_bet
        self._sync(session)
        return True

    def can_change_bet(self, session):
        return session.state == SlotState.IDLE and session.free_spins <= 0

    def add_credits(self, session, amount):
        amount = int(amount)
        if amount <= 0:
            return session.balance
        session.balance += amount
        logger.info(f"CREDITS +{amount} • BAL {session.balance} (session {session.session_id or '-'})")
        self._sync(session)
        return session.balance

    # Rounds

    def request_spin(self, session, force_respin=False, overrides=None):
        """
        Plays one requested round plus any free spins it chains into.

        Args:
            session (RoundSession): Session to play on; mutated in place.
            force_respin (bool): Spin without a debit when no free spins are
                pending.
            overrides (dict | None): Per-call generator overrides.

        Returns:
            SpinResponse: Rejection reason, or every round played in order.
        """
        if not session.machine.can(SlotState.SPINNING) or session.state != SlotState.IDLE:
            return self._reject(REJECT_ROUND_IN_PROGRESS)

        kind = self._spin_kind(session, force_respin)
        if kind is SpinKind.PAID and session.balance < session.bet:
            return self._reject(REJECT_INSUFFICIENT_BALANCE)

        rounds = [self._play_round(session, kind, overrides)]
        while session.free_spins > 0:
            self.sleep(self.auto_spin_delay)
            rounds.append(self._play_round(session, SpinKind.FREE, overrides))
        return SpinResponse(accepted=True, rounds=tuple(rounds))

    def _spin_kind(self, session, force_respin):
        if session.free_spins > 0:
            return SpinKind.FREE
        if force_respin:
            return SpinKind.RESPIN
        return SpinKind.PAID

    def _reject(self, reason):
        logger.debug(f"Spin request rejected: {reason}")
        self.presenter.spin_rejected(reason)
        return SpinResponse(accepted=False, rejection_reason=reason)

    def _play_round(self, session, kind, overrides=None):
        spec = self.math_spec
        self._spin_seq += 1
        seq = self._spin_seq

        debited = 0
        if kind is SpinKind.FREE:
            session.free_spins -= 1
        elif kind is SpinKind.PAID:
            debited = session.bet
            session.balance -= debited
            session.amount_wagered += debited
        session.total_spins += 1
        session.last_win = 0
        self._sync(session)

        frozen_this_spin = list(session.held_reels) if session.held_reels else [False] * spec.reels
        if spec.qa_log:
            logger.info(f"[SPIN#{seq}] request • {kind.value} • bet={session.bet} • bal={session.balance} • "
                        f"holdNow={format_reels(frozen_this_spin)}")

        session.machine.set(SlotState.SPINNING)
        grid = compose_spin_grid(self.model, session.previous_grid, session.held_reels, overrides)
        if spec.qa_log:
            logger.info(f"[SPIN#{seq}] grid (reels x rows): {[[str(symbol) for symbol in column] for column in grid]}")

        session.machine.set(SlotState.RESULT)
        in_free_spins = kind is SpinKind.FREE
        evaluation = evaluate_grid(grid, session.bet, spec, in_free_spins)
        if spec.qa_log:
            logger.info(
                f"[SPIN#{seq}] evaluated • inFreeSpins={in_free_spins} • scatter={evaluation.scatter_count} "
                f"(win {evaluation.scatter_win_amount}) • lines="
                f"{[(w.line_id, str(w.symbol), w.count, w.amount, w.used_wild) for w in evaluation.win_lines]} "
                f"• win={evaluation.win_amount}"
            )

        bonus = calculate_free_spins_award(evaluation.scatter_count, spec, in_free_spins)

        held_next = next_hold_mask(evaluation.held_reels_next, frozen_this_spin, in_free_spins)
        session.held_reels = held_next
        newly_locked, unlocked = hold_changes(frozen_this_spin, held_next)
        if unlocked:
            logger.debug(f"[HOLD] unlock reels (1-based): {[reel + 1 for reel in unlocked]}")
        if newly_locked:
            self.presenter.play_hold_lock(newly_locked)
        self.presenter.set_hold_indicator(list(held_next))
        if spec.qa_log:
            logger.info(f"[SPIN#{seq}] holdDecision • frozen={format_reels(frozen_this_spin)} • next={format_reels(held_next)}")

        if bonus.total > 0:
            session.machine.set(SlotState.BONUS)
            self.presenter.show_bonus_award(bonus.total)
            session.free_spins += bonus.total
            session.bonus_triggers += 1
            logger.info(f"Free spins awarded: +{bonus.total} (trigger {bonus.trigger_award}, "
                        f"retrigger {bonus.retrigger_award}); pool now {session.free_spins}")
            self._sync(session)

        session.machine.set(SlotState.WIN_PRESENTATION)
        extra_highlights = list(evaluation.scatter_positions) if evaluation.scatter_win_amount > 0 else None
        self.presenter.present_wins(
            list(evaluation.win_lines),
            evaluation.win_amount,
            session.bet,
            spec.big_win_threshold_x_bet,
            extra_highlights,
        )

        if evaluation.win_amount > 0:
            session.balance += evaluation.win_amount
            session.amount_won += evaluation.win_amount
            session.last_win = evaluation.win_amount
            self._sync(session)

        summary = build_round_summary(kind, session.bet, evaluation, session.balance, held_next)
        logger.debug(summary)

        self.sleep(self.settle_delay)
        session.machine.set(SlotState.IDLE)
        session.previous_grid = grid

        return RoundResult(
            kind=kind,
            bet=session.bet,
            debited=debited,
            grid=[list(column) for column in grid],
            evaluation=evaluation,
            held_this_spin=tuple(frozen_this_spin),
            held_next_spin=tuple(held_next),
            bonus=bonus,
            win_credited=evaluation.win_amount,
            balance_after=session.balance,
            free_spins_after=session.free_spins,
            total_spins=session.total_spins,
            summary=summary,
        )

    def _sync(self, session):
        self.presenter.sync_display(session.balance, session.bet, session.last_win,
                                    session.free_spins, session.total_spins)
