"""
Token-weighted governor - treasury spending proposals decided by
governance token holders
"""

from .errors import GovernorError, GovernorErrorKind, TransferError
from .proposal import Proposal, ProposalVote, VoteType, ProposalId
from .rules import QuorumRule
from .ledger import TokenLedger, GovernanceToken, TokenMetadata
from .environment import ExecutionEnvironment
from .storage import GovernorState
from .governor import Governor

__version__ = "0.1.0"
__all__ = [
    "Governor",
    "GovernorError",
    "GovernorErrorKind",
    "TransferError",
    "Proposal",
    "ProposalVote",
    "ProposalId",
    "VoteType",
    "QuorumRule",
    "TokenLedger",
    "GovernanceToken",
    "TokenMetadata",
    "ExecutionEnvironment",
    "GovernorState"
]
