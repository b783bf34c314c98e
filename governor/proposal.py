from dataclasses import dataclass, asdict
from enum import Enum

ProposalId = int

ONE_MINUTE = 60  # seconds


class VoteType(Enum):
    AGAINST = "against"
    FOR = "for"


@dataclass
class Proposal:
    """Spending proposal: pay `amount` to `to` once accepted"""
    to: str  # destination account
    amount: int
    vote_start: int  # timestamp (seconds)
    vote_end: int
    executed: bool = False

    def __post_init__(self):
        if self.amount <= 0:
            raise ValueError("Proposal amount must be positive")
        if self.vote_end <= self.vote_start:
            raise ValueError("Voting window must end after it starts")

    @classmethod
    def open(cls, to: str, amount: int, now: int, duration: int) -> 'Proposal':
        """Create a proposal whose voting window lasts `duration` minutes"""
        return cls(
            to=to,
            amount=amount,
            vote_start=now,
            vote_end=now + duration * ONE_MINUTE,
        )

    def is_voting_open(self, now: int) -> bool:
        return now <= self.vote_end

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Proposal':
        return cls(**data)


@dataclass
class ProposalVote:
    """Aggregated voting weight of a proposal"""
    for_weight: int = 0
    against_weight: int = 0

    @property
    def total_weight(self) -> int:
        return self.for_weight + self.against_weight

    def add(self, vote_type: VoteType, weight: int) -> 'ProposalVote':
        """Return a new tally with `weight` added to the `vote_type` side"""
        if vote_type == VoteType.FOR:
            return ProposalVote(self.for_weight + weight, self.against_weight)
        return ProposalVote(self.for_weight, self.against_weight + weight)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'ProposalVote':
        return cls(**data)
