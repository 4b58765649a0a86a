"""TicketCompletionPolicy: may an in-progress ticket be marked COMPLETED?"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CompletionSnapshot:
    """Aggregate counts over a ticket's trips and assignments."""

    incomplete_trips: int
    incomplete_assignments: int
    invalid_exit_volume_trips: int


def completion_blockers(snapshot: CompletionSnapshot) -> list[str]:
    """Return human-readable reasons that block completion (empty = eligible).

    All of these must be zero:
      1. trips without an exit time / exit sensor confirmation
      2. active assignments whose driver has not marked COMPLETED
      3. trips whose exit volume exceeds the empty-vehicle tolerance
    """
    blockers: list[str] = []
    if snapshot.incomplete_trips:
        blockers.append(f"{snapshot.incomplete_trips} trip(s) not closed")
    if snapshot.incomplete_assignments:
        blockers.append(f"{snapshot.incomplete_assignments} assignment(s) not completed")
    if snapshot.invalid_exit_volume_trips:
        blockers.append(
            f"{snapshot.invalid_exit_volume_trips} trip(s) left with a non-empty body"
        )
    return blockers
