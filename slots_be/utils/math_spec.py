"""
MathSpec resolver.

Turns loosely typed key/value configuration (environment variables, a .env
file, or any mapping) into an immutable `MathSpec`. Resolution never fails:
every malformed or missing value is replaced by a documented default so the
game can always start, even with no configuration at all.
"""
import logging
import math
import os
import re

from dotenv import dotenv_values

from slots_be.models import DEFAULT_SYMBOLS, PAY_COUNTS, REGULAR_SYMBOLS, MathSpec, SymbolId
from slots_be.utils.paylines import paylines_for_layout

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"-?\d+(\.\d+)?")
_TRUE_VALUES = ('1', 'true', 'yes', 'on')

# Case-insensitive alias table. STAR was the old scatter id, 10 the old T.
SYMBOL_ALIASES = {symbol.value: symbol for symbol in SymbolId}
SYMBOL_ALIASES.update({
    'STAR': SymbolId.SCATTER,
    '10': SymbolId.T,
})

DEFAULT_WEIGHTS = {
    SymbolId.A: 18,
    SymbolId.K: 18,
    SymbolId.Q: 16,
    SymbolId.J: 16,
    SymbolId.T: 16,
    SymbolId.CROWN: 8,
    SymbolId.SKULL: 6,
    SymbolId.PARROT: 6,
    SymbolId.CANNON: 5,
    SymbolId.CHEST_GOLD: 4,
    SymbolId.COMPASS: 5,
    SymbolId.SCATTER: 3,
    SymbolId.WILD: 2,
}

DEFAULT_PAYTABLE = {
    SymbolId.A: {3: 1, 4: 3, 5: 8},
    SymbolId.K: {3: 1, 4: 3, 5: 8},
    SymbolId.Q: {3: 1, 4: 4, 5: 10},
    SymbolId.J: {3: 1, 4: 4, 5: 10},
    SymbolId.T: {3: 2, 4: 6, 5: 15},
    SymbolId.CROWN: {3: 2, 4: 6, 5: 16},
    SymbolId.SKULL: {3: 3, 4: 10, 5: 25},
    SymbolId.PARROT: {3: 3, 4: 10, 5: 25},
    SymbolId.CANNON: {3: 4, 4: 12, 5: 30},
    SymbolId.CHEST_GOLD: {3: 5, 4: 15, 5: 40},
    SymbolId.COMPASS: {3: 4, 4: 12, 5: 30},
    SymbolId.WILD: {3: 5, 4: 20, 5: 100},
}

# Only paid when SCATTER_PAYS is on.
DEFAULT_SCATTER_PAYTABLE = {3: 2, 4: 10, 5: 50}

DEFAULTS = {
    'REELS': 5,
    'ROWS': 3,
    'BET_MIN': 10,
    'BET_MAX': 1000,
    'BET_STEP': 10,
    'MATH_TARGET_HIT_RATE': 0.32,
    'BONUS_TARGET_FREQUENCY': 0.02,
    'WILD_SUBSTITUTES': True,
    'WILD_PAYS_ITSELF': False,
    'BONUS_ENABLED': True,
    'BONUS_TRIGGER_COUNT': 3,
    'SCATTER_PAYS': False,
    'FREESPINS_AWARD': 5,
    'FREESPINS_WIN_MULT': 1.0,
    'FREESPINS_RETRIGGER_ENABLED': True,
    'FREESPINS_RETRIGGER_COUNT': 3,
    'FREESPINS_RETRIGGER_AWARD': 3,
    'BIG_WIN_THRESHOLD_XBET': 10,
    'RNG_SEED': 0,
}


def parse_number(value, default):
    """
    Tolerant numeric parsing.

    Native numbers pass through when finite. Strings yield their first signed
    decimal number, so "10 # comment" and "1   PAY_A_4=3" both parse.

    Args:
        value: Raw value (str, int, float or None).
        default: Returned when nothing usable is found.

    Returns:
        int | float: Parsed number or `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else default

    text = str(value).strip()
    if not text:
        return default
    match = _NUMBER_RE.search(text)
    if not match:
        return default
    token = match.group(0)
    number = float(token) if match.group(1) else int(token)
    return number if math.isfinite(number) else default


def parse_int(value, default):
    return int(parse_number(value, default))


def parse_bool(value, default=False):
    """`1/true/yes/on` (any case) are true; None or empty gives `default`."""
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def map_symbol(token):
    """Maps a configuration token to a SymbolId, or None when unknown."""
    if token is None:
        return None
    if isinstance(token, SymbolId):
        return token
    return SYMBOL_ALIASES.get(str(token).strip().upper())


def parse_symbol_list(value, fallback):
    """Comma-separated symbol list; unknown tokens are dropped silently."""
    if not isinstance(value, str) or not value.strip():
        return tuple(fallback)
    symbols = []
    for token in value.split(','):
        symbol = map_symbol(token)
        if symbol is not None:
            symbols.append(symbol)
    return tuple(symbols)


def _first_present(values, *keys):
    for key in keys:
        value = values.get(key)
        if value is not None and value != '':
            return value
    return None


def _resolve_weights(values, symbols):
    weights = {}
    for symbol in DEFAULT_SYMBOLS:
        keys = (f"W_{symbol.value}", "W_STAR") if symbol is SymbolId.SCATTER else (f"W_{symbol.value}",)
        weight = parse_number(_first_present(values, *keys), DEFAULT_WEIGHTS[symbol])
        if weight < 0:
            logger.warning(f"Negative weight {weight} for {symbol.value} clamped to 0.")
            weight = 0
        weights[symbol] = weight

    if sum(weights.get(symbol, 0) for symbol in symbols) <= 0:
        logger.warning("Symbol weights sum to zero for the configured symbols. Falling back to default weights.")
        weights = dict(DEFAULT_WEIGHTS)
    return weights


def _resolve_paytable(values):
    paytable = {}
    for symbol in REGULAR_SYMBOLS + (SymbolId.WILD,):
        entry = {}
        for count in PAY_COUNTS:
            raw = values.get(f"PAY_{symbol.value}_{count}")
            if raw is not None and raw != '':
                entry[count] = parse_number(raw, 0)
            else:
                entry[count] = DEFAULT_PAYTABLE[symbol][count]
        paytable[symbol] = entry
    return paytable


def _resolve_scatter_paytable(values):
    scatter_paytable = {}
    for count in PAY_COUNTS:
        raw = _first_present(values, f"PAY_SCATTER_{count}", f"PAY_STAR_{count}")
        scatter_paytable[count] = parse_number(raw, 0) if raw is not None else DEFAULT_SCATTER_PAYTABLE[count]
    return scatter_paytable


def load_math_spec(values=None):
    """
    Resolves a MathSpec from raw key/value configuration.

    Args:
        values (Mapping | None): Raw configuration, typically environment
            variables. Missing or malformed entries fall back to defaults.

    Returns:
        MathSpec: Fully populated, immutable math model.
    """
    values = values or {}

    reels = parse_int(values.get('REELS'), DEFAULTS['REELS'])
    rows = parse_int(values.get('ROWS'), DEFAULTS['ROWS'])
    if reels < 1:
        logger.warning(f"REELS={reels} is not usable. Using {DEFAULTS['REELS']}.")
        reels = DEFAULTS['REELS']
    if rows < 1:
        logger.warning(f"ROWS={rows} is not usable. Using {DEFAULTS['ROWS']}.")
        rows = DEFAULTS['ROWS']

    bet_min = parse_int(values.get('BET_MIN'), DEFAULTS['BET_MIN'])
    bet_max = parse_int(values.get('BET_MAX'), DEFAULTS['BET_MAX'])
    bet_step = parse_int(values.get('BET_STEP'), DEFAULTS['BET_STEP'])
    if bet_min > bet_max:
        logger.warning(f"BET_MIN {bet_min} exceeds BET_MAX {bet_max}. Raising BET_MAX to BET_MIN.")
        bet_max = bet_min
    if bet_step < 1:
        logger.warning(f"BET_STEP {bet_step} is below 1. Using 1.")
        bet_step = 1

    symbols = parse_symbol_list(values.get('SYMBOLS'), DEFAULT_SYMBOLS)
    if not symbols:
        logger.warning("SYMBOLS resolved to an empty list. Using the default symbol set.")
        symbols = DEFAULT_SYMBOLS

    scatter_symbol = map_symbol(values.get('BONUS_SCATTER_SYMBOL') or 'SCATTER') or SymbolId.SCATTER
    qa_force_symbol = map_symbol(values.get('QA_FORCE_SYMBOL') or None)

    spec = MathSpec(
        reels=reels,
        rows=rows,
        bet_min=bet_min,
        bet_max=bet_max,
        bet_step=bet_step,
        hit_rate=parse_number(values.get('MATH_TARGET_HIT_RATE'), DEFAULTS['MATH_TARGET_HIT_RATE']),
        bonus_target_frequency=parse_number(values.get('BONUS_TARGET_FREQUENCY'), DEFAULTS['BONUS_TARGET_FREQUENCY']),
        symbols=symbols,
        weights=_resolve_weights(values, symbols),
        paytable=_resolve_paytable(values),
        wild_substitutes=parse_bool(values.get('WILD_SUBSTITUTES'), DEFAULTS['WILD_SUBSTITUTES']),
        wild_pays_itself=parse_bool(values.get('WILD_PAYS_ITSELF'), DEFAULTS['WILD_PAYS_ITSELF']),
        scatter_symbol=scatter_symbol,
        bonus_enabled=parse_bool(values.get('BONUS_ENABLED'), DEFAULTS['BONUS_ENABLED']),
        bonus_trigger_count=parse_int(values.get('BONUS_TRIGGER_COUNT'), DEFAULTS['BONUS_TRIGGER_COUNT']),
        scatter_pays=parse_bool(values.get('SCATTER_PAYS'), DEFAULTS['SCATTER_PAYS']),
        scatter_paytable=_resolve_scatter_paytable(values),
        free_spins_award=parse_int(values.get('FREESPINS_AWARD'), DEFAULTS['FREESPINS_AWARD']),
        free_spins_win_multiplier=parse_number(values.get('FREESPINS_WIN_MULT'), DEFAULTS['FREESPINS_WIN_MULT']),
        free_spins_retrigger_enabled=parse_bool(values.get('FREESPINS_RETRIGGER_ENABLED'), DEFAULTS['FREESPINS_RETRIGGER_ENABLED']),
        free_spins_retrigger_count=parse_int(values.get('FREESPINS_RETRIGGER_COUNT'), DEFAULTS['FREESPINS_RETRIGGER_COUNT']),
        free_spins_retrigger_award=parse_int(values.get('FREESPINS_RETRIGGER_AWARD'), DEFAULTS['FREESPINS_RETRIGGER_AWARD']),
        big_win_threshold_x_bet=parse_number(values.get('BIG_WIN_THRESHOLD_XBET'), DEFAULTS['BIG_WIN_THRESHOLD_XBET']),
        rng_seed=parse_int(values.get('RNG_SEED'), DEFAULTS['RNG_SEED']),
        qa_force_bonus=parse_bool(values.get('QA_FORCE_BONUS'), False),
        qa_force_win=parse_bool(values.get('QA_FORCE_WIN'), False),
        qa_force_symbol=qa_force_symbol,
        qa_log=parse_bool(values.get('QA_LOG'), False),
        paylines=paylines_for_layout(reels, rows),
    )

    if spec.qa_force_bonus or spec.qa_force_win or spec.qa_force_symbol:
        logger.warning(
            f"QA overrides active: force_bonus={spec.qa_force_bonus}, force_win={spec.qa_force_win}, "
            f"force_symbol={spec.qa_force_symbol.value if spec.qa_force_symbol else '-'}"
        )
    return spec


def load_math_spec_from_env(env_file=None):
    """
    Resolves a MathSpec from the process environment, optionally layered over a
    .env file. Real environment variables win over values from the file.
    """
    values = {}
    if env_file:
        if os.path.exists(env_file):
            values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        else:
            logger.warning(f"Math env file '{env_file}' not found. Using environment and defaults only.")
    values.update(os.environ)
    return load_math_spec(values)
