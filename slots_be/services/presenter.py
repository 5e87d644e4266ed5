"""
Presentation collaborators for the round engine.

The engine only talks to presentation through this narrow interface. Calls
marked blocking return once the visual has finished; the others are
fire-and-forget display syncs.
"""
import logging

from slots_be.utils.hold_logic import format_reels

logger = logging.getLogger(__name__)


class Presenter:
    """No-op presenter. Subclass and override what the host can show."""

    def present_wins(self, win_lines, total_win, bet, big_win_threshold_x_bet, extra_highlights=None):
        """Blocking: highlight win lines and count up the total."""

    def show_bonus_award(self, free_spins):
        """Blocking: bonus popup for `free_spins`, returns when dismissed."""

    def play_hold_lock(self, reels):
        """Blocking: lock animation for newly held reels (0-based indexes)."""

    def set_hold_indicator(self, mask):
        """Fire-and-forget: show which reels are held for the next spin."""

    def sync_display(self, balance, bet, last_win, free_spins, total_spins):
        """Fire-and-forget: called after every state mutation."""

    def spin_rejected(self, reason):
        """Fire-and-forget: feedback for a refused spin request."""


class LoggingPresenter(Presenter):
    """Headless presenter that writes presentation calls to the log."""

    def __init__(self, log=None):
        self.log = log or logger

    def present_wins(self, win_lines, total_win, bet, big_win_threshold_x_bet, extra_highlights=None):
        big_win = bet > 0 and total_win >= bet * big_win_threshold_x_bet
        self.log.info(f"Presenting {len(win_lines)} win line(s), total {total_win}{' (BIG WIN)' if big_win else ''}")

    def show_bonus_award(self, free_spins):
        self.log.info(f"BONUS! FREE SPINS x{free_spins}")

    def play_hold_lock(self, reels):
        self.log.info(f"[HOLD] new locks (1-based): {[reel + 1 for reel in reels]}")

    def set_hold_indicator(self, mask):
        self.log.debug(f"[HOLD] held next spin: {format_reels(mask)}")

    def sync_display(self, balance, bet, last_win, free_spins, total_spins):
        self.log.debug(f"BAL {balance} • BET {bet} • WIN {last_win} • FS {free_spins} • SPINS {total_spins}")

    def spin_rejected(self, reason):
        self.log.info(f"Spin rejected: {reason}")


class RecordingPresenter(Presenter):
    """Collects presentation calls as plain dicts, in call order."""

    def __init__(self):
        self.events = []

    def _record(self, event, **payload):
        self.events.append({'event': event, **payload})

    def present_wins(self, win_lines, total_win, bet, big_win_threshold_x_bet, extra_highlights=None):
        self._record(
            'present_wins',
            line_ids=[line.line_id for line in win_lines],
            total_win=total_win,
            bet=bet,
            big_win=bet > 0 and total_win >= bet * big_win_threshold_x_bet,
            extra_highlights=[[p.reel, p.row] for p in (extra_highlights or [])],
        )

    def show_bonus_award(self, free_spins):
        self._record('bonus_award', free_spins=free_spins)

    def play_hold_lock(self, reels):
        self._record('hold_lock', reels=list(reels))

    def set_hold_indicator(self, mask):
        self._record('hold_indicator', mask=list(mask))

    def sync_display(self, balance, bet, last_win, free_spins, total_spins):
        self._record('sync_display', balance=balance, bet=bet, last_win=last_win,
                     free_spins=free_spins, total_spins=total_spins)

    def spin_rejected(self, reason):
        self._record('spin_rejected', reason=reason)

    def drain(self):
        events, self.events = self.events, []
        return events

    def of_type(self, event):
        return [e for e in self.events if e['event'] == event]
