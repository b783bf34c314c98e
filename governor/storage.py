"""
Key-value stores behind the governor and the state object that groups them
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Set, Tuple

from .proposal import Proposal, ProposalId, ProposalVote


class ProposalStore:
    """Proposal id -> Proposal, append-only apart from the executed flag"""

    def __init__(self):
        self._proposals: Dict[ProposalId, Proposal] = {}

    def get(self, proposal_id: ProposalId) -> Optional[Proposal]:
        proposal = self._proposals.get(proposal_id)
        # Callers get a copy; changes only land through insert()
        return copy.copy(proposal) if proposal is not None else None

    def insert(self, proposal_id: ProposalId, proposal: Proposal) -> None:
        self._proposals[proposal_id] = copy.copy(proposal)

    def __contains__(self, proposal_id: ProposalId) -> bool:
        return proposal_id in self._proposals

    def __len__(self) -> int:
        return len(self._proposals)

    def items(self) -> Iterator[Tuple[ProposalId, Proposal]]:
        for proposal_id in sorted(self._proposals):
            yield proposal_id, copy.copy(self._proposals[proposal_id])


class VoteTallyStore:
    """Proposal id -> ProposalVote, zero until the first vote"""

    def __init__(self):
        self._tallies: Dict[ProposalId, ProposalVote] = {}

    def get(self, proposal_id: ProposalId) -> ProposalVote:
        tally = self._tallies.get(proposal_id)
        return copy.copy(tally) if tally is not None else ProposalVote()

    def insert(self, proposal_id: ProposalId, tally: ProposalVote) -> None:
        self._tallies[proposal_id] = copy.copy(tally)

    def __contains__(self, proposal_id: ProposalId) -> bool:
        return proposal_id in self._tallies

    def items(self) -> Iterator[Tuple[ProposalId, ProposalVote]]:
        for proposal_id in sorted(self._tallies):
            yield proposal_id, copy.copy(self._tallies[proposal_id])


class VoteLedger:
    """Set of (proposal id, voter) pairs that already voted"""

    def __init__(self):
        self._votes: Set[Tuple[ProposalId, str]] = set()

    def contains(self, proposal_id: ProposalId, voter: str) -> bool:
        return (proposal_id, voter) in self._votes

    def insert(self, proposal_id: ProposalId, voter: str) -> None:
        self._votes.add((proposal_id, voter))

    def pairs(self) -> list:
        return sorted(self._votes)

    def voters(self, proposal_id: ProposalId) -> list:
        return sorted(voter for pid, voter in self._votes if pid == proposal_id)

    def __len__(self) -> int:
        return len(self._votes)


@dataclass
class GovernorState:
    """Everything the governor persists between calls"""
    proposals: ProposalStore = field(default_factory=ProposalStore)
    proposal_votes: VoteTallyStore = field(default_factory=VoteTallyStore)
    votes: VoteLedger = field(default_factory=VoteLedger)
    next_proposal_id: ProposalId = 0

    def snapshot(self) -> 'GovernorState':
        return copy.deepcopy(self)

    def restore(self, snapshot: 'GovernorState') -> None:
        """Roll every store back to `snapshot`"""
        self.proposals = snapshot.proposals
        self.proposal_votes = snapshot.proposal_votes
        self.votes = snapshot.votes
        self.next_proposal_id = snapshot.next_proposal_id

    def to_dict(self) -> dict:
        """Serialize state to dictionary"""
        return {
            'next_proposal_id': self.next_proposal_id,
            'proposals': {
                str(pid): proposal.to_dict()
                for pid, proposal in self.proposals.items()
            },
            'proposal_votes': {
                str(pid): tally.to_dict()
                for pid, tally in self.proposal_votes.items()
            },
            'votes': [[pid, voter] for pid, voter in self.votes.pairs()],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GovernorState':
        """Deserialize state from dictionary"""
        state = cls(next_proposal_id=data['next_proposal_id'])

        for pid, proposal_data in data.get('proposals', {}).items():
            state.proposals.insert(int(pid), Proposal.from_dict(proposal_data))

        for pid, tally_data in data.get('proposal_votes', {}).items():
            state.proposal_votes.insert(int(pid), ProposalVote.from_dict(tally_data))

        for pid, voter in data.get('votes', []):
            state.votes.insert(int(pid), voter)

        return state
