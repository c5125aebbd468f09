"""
Errors raised by the bracket engine and its collaborators.

Everything a caller can fix by changing its input derives from TournamentError
(itself a ValueError, so callers that only know about ValueError still work).
BracketCorruption is kept apart: it signals broken bracket data, not bad input.
"""


class TournamentError(ValueError):
    pass


class NotFound(TournamentError, LookupError):
    pass


class InvalidTopology(TournamentError):
    pass


class AlreadyGenerated(TournamentError):
    pass


class BracketNotGenerated(TournamentError):
    pass


class AlreadyStarted(TournamentError):
    pass


class IncompleteRoster(TournamentError):
    pass


class MatchNotReady(TournamentError):
    pass


class MatchAlreadyCompleted(TournamentError):
    pass


class IncompleteMatch(TournamentError):
    pass


class InvalidScore(TournamentError):
    pass


class DrawNotAllowed(TournamentError):
    pass


class CannotResetCompleted(TournamentError):
    pass


# Participant directory errors
class RegistrationClosed(TournamentError):
    pass


class RosterFull(TournamentError):
    pass


class DuplicateParticipant(TournamentError):
    pass


class InvalidCsv(TournamentError):
    pass


class BracketCorruption(RuntimeError):
    """The stored bracket no longer matches the topology it was generated with."""
