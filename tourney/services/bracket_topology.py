"""
Shape of a single-elimination bracket, derived only from the participant count.

Matches are numbered 1..N-1 in round-major order (all of round 1, then all of
round 2, ...). Every positional lookup below is recomputed from
(participant_count, round) so it can never drift from the stored bracket.
"""
from typing import List, NamedTuple, Sequence, Tuple, TypeVar

from tourney.core.exceptions import InvalidTopology

T = TypeVar("T")

ROUND_NAMES = {
    0: "Final",
    1: "Semifinal",
    2: "Quarterfinal",
    3: "Round of 16",
    4: "Round of 32",
    5: "Round of 64",
}


class MatchSlot(NamedTuple):
    round: int
    index_in_round: int
    slot: int # 1 -> participant1, 2 -> participant2


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0

def total_rounds_for(participant_count: int) -> int:
    if not is_power_of_two(participant_count) or participant_count < 2:
        raise InvalidTopology(
            f"Participant count must be a power of two (4, 8, 16, 32, 64); got {participant_count}."
        )
    return participant_count.bit_length() - 1

def matches_in_round(participant_count: int, round_number: int) -> int:
    return participant_count // (2 ** round_number)

def round_layout(participant_count: int) -> List[Tuple[int, int]]:
    """[(round, match_count), ...] for every round of the bracket."""
    total_rounds = total_rounds_for(participant_count)
    return [(r, matches_in_round(participant_count, r)) for r in range(1, total_rounds + 1)]

def first_match_number_of_round(participant_count: int, round_number: int) -> int:
    match_number = 1
    for r in range(1, round_number):
        match_number += matches_in_round(participant_count, r)
    return match_number

def next_match_slot(participant_count: int, round_number: int, match_number: int) -> MatchSlot:
    """Where the winner of `match_number` plays next: the even/odd index picks the slot."""
    index_in_round = match_number - first_match_number_of_round(participant_count, round_number)
    return MatchSlot(
        round=round_number + 1,
        index_in_round=index_in_round // 2,
        slot=1 if index_in_round % 2 == 0 else 2,
    )

def get_round_name(round_number: int, total_rounds: int) -> str:
    return ROUND_NAMES.get(total_rounds - round_number, f"Round {round_number}")

def create_seed_pairings(participants: Sequence[T]) -> List[Tuple[T, T]]:
    """Seed 1 vs seed n, seed 2 vs seed n-1, ... for an already seed-sorted list."""
    n = len(participants)
    return [(participants[i], participants[n - 1 - i]) for i in range(n // 2)]
