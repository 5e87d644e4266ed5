from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Tuple

from slots_be.utils.state_machine import StateMachine


class SymbolId(str, Enum):
    A = "A"
    K = "K"
    Q = "Q"
    J = "J"
    T = "T"
    CROWN = "CROWN"
    SKULL = "SKULL"
    PARROT = "PARROT"
    CANNON = "CANNON"
    CHEST_GOLD = "CHEST_GOLD"
    COMPASS = "COMPASS"
    WILD = "WILD"
    SCATTER = "SCATTER"

    def __str__(self):
        return self.value


REGULAR_SYMBOLS = (
    SymbolId.A, SymbolId.K, SymbolId.Q, SymbolId.J, SymbolId.T,
    SymbolId.CROWN, SymbolId.SKULL, SymbolId.PARROT, SymbolId.CANNON,
    SymbolId.CHEST_GOLD, SymbolId.COMPASS,
)
# Declared order matters: weighted sampling walks symbols in this order.
DEFAULT_SYMBOLS = REGULAR_SYMBOLS + (SymbolId.WILD, SymbolId.SCATTER)
PAY_COUNTS = (3, 4, 5)

Grid = List[List[SymbolId]]  # grid[reel][row]
HoldMask = List[bool]


class Position(NamedTuple):
    reel: int
    row: int


@dataclass(frozen=True)
class Payline:
    id: int
    rows: Tuple[int, ...]  # one row index per reel


@dataclass(frozen=True)
class MathSpec:
    """Session-scoped math model. Built once by the resolver, never mutated."""
    reels: int
    rows: int

    bet_min: int
    bet_max: int
    bet_step: int

    hit_rate: float
    bonus_target_frequency: float

    symbols: Tuple[SymbolId, ...]
    weights: Dict[SymbolId, float]
    paytable: Dict[SymbolId, Dict[int, float]]

    wild_substitutes: bool
    wild_pays_itself: bool

    scatter_symbol: SymbolId
    bonus_enabled: bool
    bonus_trigger_count: int
    scatter_pays: bool
    scatter_paytable: Dict[int, float]

    free_spins_award: int
    free_spins_win_multiplier: float
    free_spins_retrigger_enabled: bool
    free_spins_retrigger_count: int
    free_spins_retrigger_award: int

    big_win_threshold_x_bet: float

    rng_seed: int  # 0 => non-deterministic
    qa_force_bonus: bool = False
    qa_force_win: bool = False
    qa_force_symbol: Optional[SymbolId] = None
    qa_log: bool = False

    paylines: Tuple[Payline, ...] = ()

    def payout_multiplier(self, symbol, count):
        """Paytable lookup; gaps pay nothing."""
        return self.paytable.get(symbol, {}).get(count, 0)


@dataclass(frozen=True)
class GeneratedSpin:
    grid: Grid
    forced_win: bool
    forced_scatter: bool


@dataclass(frozen=True)
class WinLine:
    line_id: int
    path_rows: Tuple[int, ...]
    symbol: SymbolId
    count: int
    used_wild: bool
    amount: float
    positions: Tuple[Position, ...]


@dataclass(frozen=True)
class EvaluatedSpin:
    win_amount: int
    win_lines: Tuple[WinLine, ...]
    scatter_count: int
    scatter_positions: Tuple[Position, ...]
    scatter_win_amount: float
    held_reels_next: Tuple[bool, ...]


@dataclass(frozen=True)
class BonusAward:
    triggered: bool
    trigger_award: int
    retrigger_award: int

    @property
    def total(self):
        return self.trigger_award + self.retrigger_award


class SlotState(str, Enum):
    IDLE = "IDLE"
    SPINNING = "SPINNING"
    RESULT = "RESULT"
    BONUS = "BONUS"
    WIN_PRESENTATION = "WIN_PRESENTATION"


SLOT_TRANSITIONS = {
    SlotState.IDLE: (SlotState.SPINNING,),
    SlotState.SPINNING: (SlotState.RESULT,),
    SlotState.RESULT: (SlotState.BONUS, SlotState.WIN_PRESENTATION, SlotState.IDLE),
    SlotState.BONUS: (SlotState.WIN_PRESENTATION,),
    SlotState.WIN_PRESENTATION: (SlotState.IDLE, SlotState.SPINNING),
}


def create_slot_state_machine():
    return StateMachine(SlotState.IDLE, SLOT_TRANSITIONS)


class SpinKind(str, Enum):
    PAID = "PAID"
    FREE = "FREE"
    RESPIN = "RESPIN"


@dataclass
class RoundSession:
    """
    Mutable per-player session record. The caller owns it and hands it to the
    round engine, which is the only thing allowed to mutate it.
    """
    balance: int
    bet: int
    last_win: int = 0
    free_spins: int = 0
    total_spins: int = 0
    previous_grid: Optional[Grid] = None
    held_reels: Optional[HoldMask] = None
    amount_wagered: int = 0
    amount_won: int = 0
    bonus_triggers: int = 0
    session_id: Optional[str] = None
    session_start: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    machine: StateMachine = field(default_factory=create_slot_state_machine, repr=False)

    @property
    def state(self):
        return self.machine.state

    @property
    def in_free_spins(self):
        return self.free_spins > 0

    def __repr__(self):
        return (f"<RoundSession id={self.session_id} state={self.state.value} balance={self.balance} "
                f"bet={self.bet} free_spins={self.free_spins} spins={self.total_spins}>")


@dataclass(frozen=True)
class RoundResult:
    kind: SpinKind
    bet: int
    debited: int
    grid: Grid
    evaluation: EvaluatedSpin
    held_this_spin: Tuple[bool, ...]
    held_next_spin: Tuple[bool, ...]
    bonus: BonusAward
    win_credited: int
    balance_after: int
    free_spins_after: int
    total_spins: int
    summary: str = ""


@dataclass(frozen=True)
class SpinResponse:
    accepted: bool
    rejection_reason: Optional[str] = None
    rounds: Tuple[RoundResult, ...] = ()

    @property
    def total_win(self):
        return sum(r.win_credited for r in self.rounds)
