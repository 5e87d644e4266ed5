from marshmallow import Schema, fields, ValidationError, validates, EXCLUDE
from marshmallow.validate import Range

# --- Validators ---
def validate_amount(amount):
    """Validate credit amounts (whole currency units)"""
    if amount < 0:
        raise ValidationError('Amount cannot be negative.')

    if amount > 1_000_000_000:
        raise ValidationError('Amount exceeds maximum allowed value.')

    return amount

def _grid_to_ids(grid):
    return [[str(symbol) for symbol in column] for column in grid] if grid else None

def _positions_to_lists(positions):
    return [[position.reel, position.row] for position in positions]

# --- Request Schemas ---
class CreateSessionSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    balance = fields.Int(load_default=None, validate=validate_amount)
    bet = fields.Int(load_default=None, validate=Range(min=1, error="Bet must be a positive amount."))

class ChangeBetSchema(Schema):
    delta = fields.Int(required=True)

    @validates('delta')
    def validate_delta(self, value, **kwargs):
        if value == 0:
            raise ValidationError('Bet delta must be non-zero.')

class AddCreditsSchema(Schema):
    amount = fields.Int(
        required=True,
        validate=[
            validate_amount,
            Range(min=1, error="Top-up amount must be at least 1."),
        ]
    )

# --- Response Schemas ---
class WinLineSchema(Schema):
    line_id = fields.Int()
    path_rows = fields.List(fields.Int())
    symbol = fields.Function(lambda obj: str(obj.symbol))
    count = fields.Int()
    used_wild = fields.Bool()
    amount = fields.Float()
    positions = fields.Function(lambda obj: _positions_to_lists(obj.positions))

class EvaluatedSpinSchema(Schema):
    win_amount = fields.Int()
    win_lines = fields.List(fields.Nested(WinLineSchema))
    scatter_count = fields.Int()
    scatter_positions = fields.Function(lambda obj: _positions_to_lists(obj.scatter_positions))
    scatter_win_amount = fields.Float()
    held_reels_next = fields.List(fields.Bool())

class BonusAwardSchema(Schema):
    triggered = fields.Bool()
    trigger_award = fields.Int()
    retrigger_award = fields.Int()
    total = fields.Int()

class RoundResultSchema(Schema):
    kind = fields.Function(lambda obj: obj.kind.value)
    bet = fields.Int()
    debited = fields.Int()
    grid = fields.Function(lambda obj: _grid_to_ids(obj.grid))
    evaluation = fields.Nested(EvaluatedSpinSchema)
    held_this_spin = fields.List(fields.Bool())
    held_next_spin = fields.List(fields.Bool())
    bonus = fields.Nested(BonusAwardSchema)
    win_credited = fields.Int()
    balance_after = fields.Int()
    free_spins_after = fields.Int()
    total_spins = fields.Int()
    summary = fields.Str()

class SessionSchema(Schema):
    session_id = fields.Str()
    state = fields.Function(lambda obj: obj.state.value)
    balance = fields.Int()
    bet = fields.Int()
    last_win = fields.Int()
    free_spins = fields.Int()
    total_spins = fields.Int()
    in_free_spins = fields.Bool()
    held_reels = fields.Function(lambda obj: list(obj.held_reels) if obj.held_reels else [])
    previous_grid = fields.Function(lambda obj: _grid_to_ids(obj.previous_grid))
    amount_wagered = fields.Int()
    amount_won = fields.Int()
    bonus_triggers = fields.Int()
    session_start = fields.DateTime()

class SpinResponseSchema(Schema):
    accepted = fields.Bool()
    rejection_reason = fields.Str(allow_none=True)
    total_win = fields.Int()
    rounds = fields.List(fields.Nested(RoundResultSchema))

class PaylineSchema(Schema):
    id = fields.Int()
    rows = fields.List(fields.Int())

class MathSpecSummarySchema(Schema):
    """Client-safe view of the math model. QA flags and the RNG seed are never exposed."""
    reels = fields.Int()
    rows = fields.Int()
    bet_min = fields.Int()
    bet_max = fields.Int()
    bet_step = fields.Int()
    symbols = fields.Function(lambda obj: [str(symbol) for symbol in obj.symbols])
    paytable = fields.Function(
        lambda obj: {str(symbol): {str(count): value for count, value in pays.items()}
                     for symbol, pays in obj.paytable.items()}
    )
    wild_substitutes = fields.Bool()
    wild_pays_itself = fields.Bool()
    scatter_symbol = fields.Function(lambda obj: str(obj.scatter_symbol))
    bonus_enabled = fields.Bool()
    bonus_trigger_count = fields.Int()
    scatter_pays = fields.Bool()
    scatter_paytable = fields.Function(
        lambda obj: {str(count): value for count, value in obj.scatter_paytable.items()}
    )
    free_spins_award = fields.Int()
    free_spins_win_multiplier = fields.Float()
    free_spins_retrigger_enabled = fields.Bool()
    free_spins_retrigger_count = fields.Int()
    free_spins_retrigger_award = fields.Int()
    big_win_threshold_x_bet = fields.Float()
    paylines = fields.List(fields.Nested(PaylineSchema))
