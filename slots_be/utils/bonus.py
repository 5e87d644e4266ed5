from slots_be.models import BonusAward


def should_trigger_bonus(scatter_count, math_spec):
    return math_spec.bonus_enabled and scatter_count >= math_spec.bonus_trigger_count


def get_bonus_free_spins_award(scatter_count, math_spec):
    return math_spec.free_spins_award if should_trigger_bonus(scatter_count, math_spec) else 0


def get_retrigger_free_spins_award(scatter_count, math_spec):
    if not math_spec.free_spins_retrigger_enabled:
        return 0
    return math_spec.free_spins_retrigger_award if scatter_count >= math_spec.free_spins_retrigger_count else 0


def calculate_free_spins_award(scatter_count, math_spec, in_free_spins):
    """
    Free spins earned by one round.

    Trigger and retrigger awards simply add up when both apply. The retrigger
    is only looked at while the round is already part of a free-spin sequence.

    Args:
        scatter_count (int): Scatter symbols on the stopped grid.
        math_spec (MathSpec): Resolved math model.
        in_free_spins (bool): Whether this round was itself a free spin.

    Returns:
        BonusAward: Breakdown of the award.
    """
    trigger_award = get_bonus_free_spins_award(scatter_count, math_spec)
    retrigger_award = get_retrigger_free_spins_award(scatter_count, math_spec) if in_free_spins else 0
    return BonusAward(
        triggered=should_trigger_bonus(scatter_count, math_spec),
        trigger_award=trigger_award,
        retrigger_award=retrigger_award,
    )
