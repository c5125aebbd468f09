from .tournament_model import TournamentModel, TournamentPatch, TournamentStatus, TournamentType, VALID_PARTICIPANT_COUNTS
from .participant_model import ParticipantModel, ParticipantPatch, ParticipantStatus
from .bracket_model import MatchModel, MatchPatch, MatchStatus, ResultModel
