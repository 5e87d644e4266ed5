from typing import List, Tuple

from slots_be.models import Payline

# Row indices: 0=top, 1=middle, 2=bottom.
PAYLINES_5X3: Tuple[Payline, ...] = (
    Payline(id=1, rows=(1, 1, 1, 1, 1)),  # middle
    Payline(id=2, rows=(0, 0, 0, 0, 0)),  # top
    Payline(id=3, rows=(2, 2, 2, 2, 2)),  # bottom
    Payline(id=4, rows=(0, 1, 2, 1, 0)),  # V
    Payline(id=5, rows=(2, 1, 0, 1, 2)),  # inverted V
    Payline(id=6, rows=(0, 0, 1, 0, 0)),  # top-center
    Payline(id=7, rows=(2, 2, 1, 2, 2)),  # bottom-center
)


def generate_paylines(payline_count, reels, rows):
    """
    Builds deterministic paylines for a non-standard layout.

    The straight lines come first (middle, top, bottom), then V shapes when the
    layout has room for them, then zig-zag variants until `payline_count`
    distinct lines exist or the patterns run out.

    Args:
        payline_count (int): Number of lines wanted.
        reels (int): Reel count (path length).
        rows (int): Row count (row index range).

    Returns:
        tuple[Payline, ...]: Lines numbered from 1.
    """
    if payline_count <= 0 or reels <= 0 or rows <= 0:
        return ()

    mid = rows // 2
    patterns: List[Tuple[int, ...]] = [tuple([mid] * reels)]
    if rows >= 2:
        patterns.append(tuple([0] * reels))
        patterns.append(tuple([rows - 1] * reels))
    if rows >= 3 and reels >= 3:
        v_shape = tuple(min(r, reels - 1 - r, rows - 1) for r in range(reels))
        patterns.append(v_shape)
        patterns.append(tuple(rows - 1 - row for row in v_shape))

    for mode in range(4):
        line = []
        for reel in range(reels):
            if mode == 0:
                row = reel % rows
            elif mode == 1:
                row = (rows - 1 - reel) % rows
            elif mode == 2:
                row = (mid + (1 if reel % 2 else -1)) % rows
            else:
                row = (mid + (1 if reel % 3 == 0 else -1)) % rows
            line.append(row)
        patterns.append(tuple(line))

    unique: List[Tuple[int, ...]] = []
    for pattern in patterns:
        if pattern not in unique:
            unique.append(pattern)

    return tuple(Payline(id=i + 1, rows=rows_path) for i, rows_path in enumerate(unique[:payline_count]))


def paylines_for_layout(reels, rows):
    """Canonical seven lines for 5x3, generated lines for anything else."""
    if reels == 5 and rows == 3:
        return PAYLINES_5X3
    return generate_paylines(len(PAYLINES_5X3), reels, rows)
