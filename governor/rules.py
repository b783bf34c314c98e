from dataclasses import dataclass

from .errors import GovernorError, GovernorErrorKind
from .proposal import ProposalVote


@dataclass(frozen=True)
class QuorumRule:
    """Quorum and majority rule applied before a proposal may execute"""

    quorum: int  # percentage of total supply (0-100)

    def __post_init__(self):
        if isinstance(self.quorum, bool) or not isinstance(self.quorum, int):
            raise ValueError(f"Quorum must be an integer, got {self.quorum!r}")
        if not (0 <= self.quorum <= 100):
            raise ValueError("Quorum must be between 0 and 100")

    @classmethod
    def simple_majority(cls) -> 'QuorumRule':
        """Half of the supply has to take part"""
        return cls(quorum=50)

    @classmethod
    def open_participation(cls) -> 'QuorumRule':
        """No participation threshold; any non-losing tally passes"""
        return cls(quorum=0)

    @staticmethod
    def voter_weight(balance: int, total_supply: int) -> int:
        """Voter's balance as a whole percentage of total supply, rounded down"""
        if total_supply == 0:
            raise GovernorError(
                GovernorErrorKind.DIVISION_BY_ZERO,
                "Token ledger reports zero total supply"
            )
        return balance * 100 // total_supply

    def quorum_reached(self, tally: ProposalVote) -> bool:
        return tally.total_weight >= self.quorum

    def is_accepted(self, tally: ProposalVote) -> bool:
        # Ties count as accepted
        return tally.for_weight >= tally.against_weight

    def validate_tally(self, tally: ProposalVote) -> tuple[bool, str]:
        """Validate tally against quorum and majority rules"""

        if not self.quorum_reached(tally):
            return False, f"Need {self.quorum}% voting weight, got {tally.total_weight}%"

        if not self.is_accepted(tally):
            return False, (
                f"Rejected: {tally.against_weight}% against vs {tally.for_weight}% for"
            )

        return True, "Proposal accepted"

    def check_tally(self, tally: ProposalVote) -> None:
        """Raise the matching GovernorError if the tally does not pass"""
        is_valid, reason = self.validate_tally(tally)
        if is_valid:
            return

        if not self.quorum_reached(tally):
            raise GovernorError(GovernorErrorKind.QUORUM_NOT_REACHED, reason)
        raise GovernorError(GovernorErrorKind.PROPOSAL_NOT_ACCEPTED, reason)
