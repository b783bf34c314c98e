from enum import Enum
from typing import Optional


class GovernorErrorKind(Enum):
    AMOUNT_SHOULD_NOT_BE_ZERO = "AmountShouldNotBeZero"
    DURATION_ERROR = "DurationError"
    PROPOSAL_NOT_FOUND = "ProposalNotFound"
    PROPOSAL_ALREADY_EXECUTED = "ProposalAlreadyExecuted"
    VOTE_PERIOD_ENDED = "VotePeriodEnded"
    ALREADY_VOTED = "AlreadyVoted"
    QUORUM_NOT_REACHED = "QuorumNotReached"
    PROPOSAL_NOT_ACCEPTED = "ProposalNotAccepted"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    DIVISION_BY_ZERO = "DivisionByZero"
    TRANSFER_FAILED = "TransferFailed"


class GovernorError(Exception):
    """Governance call rejected; the call left no state behind"""

    def __init__(self, kind: GovernorErrorKind, message: Optional[str] = None):
        self.kind = kind
        super().__init__(message or kind.value)

    def __eq__(self, other):
        if isinstance(other, GovernorError):
            return self.kind == other.kind
        return NotImplemented

    def __hash__(self):
        return hash(self.kind)

    def __repr__(self) -> str:
        return f"GovernorError({self.kind.value})"


class TransferError(Exception):
    """Native value transfer out of an account failed"""
