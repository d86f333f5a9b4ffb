"""
Rank constants, per-rank capacities, and hand helpers.

A hand (also used for the table stack) is a tuple of per-rank counts:
    index 0 = A (strongest), 1 = K, 2 = Q, 3 = J, 4 = T (ten), 5 = 9 (weakest)

The five strongest ranks have 4 copies in play. Only 3 nines are in play: the
fourth nine starts the stack and never moves, so it is not modelled.

String representations are used exclusively at I/O boundaries.
"""

from __future__ import annotations

Hand = tuple[int, ...]

RANK_NAMES: list[str] = ['A', 'K', 'Q', 'J', 'T', '9']

# Copies in play per rank index, strongest first.
RANK_CAPACITIES: tuple[int, ...] = (4, 4, 4, 4, 4, 3)

NUM_RANKS: int = len(RANK_CAPACITIES)

# Largest capacity whose triple table still fits a 4-bit index (15 triples).
MAX_CAPACITY: int = 4


def empty_hand(num_ranks: int = NUM_RANKS) -> Hand:
    """Return a hand with no cards.

    Examples:
        >>> empty_hand()
        (0, 0, 0, 0, 0, 0)
    """
    return (0,) * num_ranks


def is_empty(hand: Hand) -> bool:
    """Return True if the hand holds no cards at all.

    Examples:
        >>> is_empty((0, 0, 0, 0, 0, 0))
        True
        >>> is_empty((0, 0, 0, 0, 0, 1))
        False
    """
    return not any(hand)


def hand_size(hand: Hand) -> int:
    """Return the total number of cards in a hand.

    Examples:
        >>> hand_size((2, 2, 2, 2, 2, 1))
        11
    """
    return sum(hand)


def top_rank(stack: Hand) -> int | None:
    """Return the index of the strongest rank present on the stack.

    Cards are only ever put on the stack in non-increasing strength order
    (equal or stronger than what lies beneath), so the strongest rank
    present is the top of the stack.

    Examples:
        >>> top_rank((0, 0, 1, 0, 2, 0))
        2
        >>> top_rank((0, 0, 0, 0, 0, 0)) is None
        True
    """
    for rank, count in enumerate(stack):
        if count > 0:
            return rank
    return None


def with_count(hand: Hand, rank: int, delta: int) -> Hand:
    """Return a copy of the hand with ``delta`` added to one rank's count.

    Examples:
        >>> with_count((2, 2, 2, 2, 2, 1), 0, -1)
        (1, 2, 2, 2, 2, 1)
    """
    counts = list(hand)
    counts[rank] += delta
    return tuple(counts)


def rank_to_str(rank: int) -> str:
    """Return the one-character name of a rank index.

    Examples:
        >>> rank_to_str(0)
        'A'
        >>> rank_to_str(4)
        'T'
    """
    return RANK_NAMES[rank]


def hand_to_str(hand: Hand) -> str:
    """Convert a hand to a string, weakest rank first.

    For the stack this puts the top card at the right-hand end.

    Examples:
        >>> hand_to_str((1, 0, 0, 0, 2, 3))
        '999TTA'
        >>> hand_to_str((0, 0, 0, 0, 0, 0))
        ''
    """
    return ''.join(
        RANK_NAMES[rank] * hand[rank]
        for rank in reversed(range(len(hand)))
    )


def str_to_hand(s: str, num_ranks: int = NUM_RANKS) -> Hand:
    """Parse a string of rank characters into a hand, in any order.

    Whitespace is ignored; '10' is not accepted, tens are written 'T'.

    Raises:
        ValueError: If a character is not a rank name, or names a rank
                    beyond ``num_ranks``.

    Examples:
        >>> str_to_hand('AK9')
        (1, 1, 0, 0, 0, 1)
        >>> str_to_hand('')
        (0, 0, 0, 0, 0, 0)
    """
    counts = [0] * num_ranks
    for ch in s.upper():
        if ch.isspace():
            continue
        if ch not in RANK_NAMES:
            raise ValueError(f"Unknown rank character {ch!r} in {s!r}.")
        rank = RANK_NAMES.index(ch)
        if rank >= num_ranks:
            raise ValueError(f"Rank {ch!r} is outside a {num_ranks}-rank deck.")
        counts[rank] += 1
    return tuple(counts)
