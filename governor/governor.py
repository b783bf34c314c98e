"""
Token-weighted governor: proposals to spend the contract balance, one
weighted vote per holder, execution once quorum and majority are met
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from .environment import ExecutionEnvironment
from .errors import GovernorError, GovernorErrorKind, TransferError
from .ledger import TokenLedger
from .proposal import Proposal, ProposalId, ProposalVote, VoteType
from .rules import QuorumRule
from .storage import GovernorState

logger = logging.getLogger(__name__)


def _require_natural(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")


def _require_account(name: str, value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{name} must be a non-empty account id, got {value!r}")


class Governor:
    """Proposal lifecycle and vote tallying over a governance token.

    Every public call is atomic: if it raises, the state is exactly what
    it was before the call.

    Voting weight is read from the token ledger at the moment of the vote,
    not snapshotted when the proposal is created, so the same tokens can
    weigh on several proposals and balances moved between votes change
    influence.
    """

    def __init__(
        self,
        governance_token: TokenLedger,
        quorum: int,
        env: ExecutionEnvironment,
        state: Optional[GovernorState] = None
    ):
        if not isinstance(governance_token, TokenLedger):
            raise ValueError("governance_token must provide total_supply() and balance_of()")

        self.governance_token = governance_token
        self.rules = QuorumRule(quorum)
        self.env = env
        self.state = state or GovernorState()

    @property
    def quorum(self) -> int:
        return self.rules.quorum

    @contextmanager
    def _atomic(self, operation: str):
        snapshot = self.state.snapshot()
        try:
            yield
        except GovernorError as e:
            self.state.restore(snapshot)
            logger.warning("%s rejected: %s", operation, e.kind.value)
            raise
        except Exception:
            self.state.restore(snapshot)
            logger.exception("%s failed, state rolled back", operation)
            raise

    def propose(self, to: str, amount: int, duration: int) -> ProposalId:
        """Create a proposal paying `amount` to `to`, open for `duration` minutes"""
        _require_account("to", to)
        _require_natural("amount", amount)
        _require_natural("duration", duration)

        with self._atomic("propose"):
            if amount == 0:
                raise GovernorError(GovernorErrorKind.AMOUNT_SHOULD_NOT_BE_ZERO)
            elif amount >= self.env.balance():
                raise GovernorError(
                    GovernorErrorKind.INSUFFICIENT_BALANCE,
                    f"Proposal amount {amount} must be below contract balance {self.env.balance()}"
                )

            if duration == 0:
                raise GovernorError(GovernorErrorKind.DURATION_ERROR)

            proposal = Proposal.open(to, amount, self.now(), duration)

            proposal_id = self.state.next_proposal_id
            self.state.proposals.insert(proposal_id, proposal)
            self.state.next_proposal_id += 1

        logger.info("Proposal %d created: %d to %s, voting ends at %d",
                    proposal_id, amount, to, proposal.vote_end)
        return proposal_id

    def vote(self, proposal_id: ProposalId, vote_type: VoteType) -> None:
        """Cast the caller's weighted vote on a proposal"""
        if not isinstance(vote_type, VoteType):
            raise ValueError(f"vote_type must be a VoteType, got {vote_type!r}")

        caller = self.env.caller

        with self._atomic("vote"):
            proposal = self.get_proposal(proposal_id)

            if proposal.executed:
                raise GovernorError(GovernorErrorKind.PROPOSAL_ALREADY_EXECUTED)

            if not proposal.is_voting_open(self.now()):
                raise GovernorError(GovernorErrorKind.VOTE_PERIOD_ENDED)

            if self.state.votes.contains(proposal_id, caller):
                raise GovernorError(GovernorErrorKind.ALREADY_VOTED)

            # Recorded before the ledger is queried
            self.state.votes.insert(proposal_id, caller)

            total_supply = self.total_supply()
            caller_balance = self.balance_of(caller)
            weight = self.rules.voter_weight(caller_balance, total_supply)
            logger.debug("Voter %s holds %d of %d -> weight %d",
                         caller, caller_balance, total_supply, weight)

            tally = self.state.proposal_votes.get(proposal_id).add(vote_type, weight)
            self.state.proposal_votes.insert(proposal_id, tally)

        logger.info("Vote %s on proposal %d with weight %d",
                    vote_type.value, proposal_id, weight)

    def execute(self, proposal_id: ProposalId) -> None:
        """Pay out an accepted proposal; allowed before its voting window closes"""

        with self._atomic("execute"):
            proposal = self.get_proposal(proposal_id)

            if proposal.executed:
                raise GovernorError(GovernorErrorKind.PROPOSAL_ALREADY_EXECUTED)

            tally = self.state.proposal_votes.get(proposal_id)
            self.rules.check_tally(tally)

            if self.env.balance() <= proposal.amount:
                raise GovernorError(
                    GovernorErrorKind.INSUFFICIENT_BALANCE,
                    f"Contract balance {self.env.balance()} must exceed {proposal.amount}"
                )

            try:
                self.env.transfer(proposal.to, proposal.amount)
            except TransferError as e:
                raise GovernorError(GovernorErrorKind.TRANSFER_FAILED, str(e)) from e

            proposal.executed = True
            self.state.proposals.insert(proposal_id, proposal)

        logger.info("Proposal %d executed: %d sent to %s",
                    proposal_id, proposal.amount, proposal.to)

    def now(self) -> int:
        return self.env.block_timestamp

    def get_proposal(self, proposal_id: ProposalId) -> Proposal:
        proposal = self.state.proposals.get(proposal_id)
        if proposal is None:
            raise GovernorError(
                GovernorErrorKind.PROPOSAL_NOT_FOUND,
                f"Proposal {proposal_id} not found"
            )
        return proposal

    def get_proposal_vote(self, proposal_id: ProposalId) -> ProposalVote:
        self.get_proposal(proposal_id)
        return self.state.proposal_votes.get(proposal_id)

    def has_voted(self, proposal_id: ProposalId, account: str) -> bool:
        return self.state.votes.contains(proposal_id, account)

    def next_proposal_id(self) -> ProposalId:
        return self.state.next_proposal_id

    def total_supply(self) -> int:
        return self.governance_token.total_supply()

    def balance_of(self, account: str) -> int:
        return self.governance_token.balance_of(account)

    def get_active_proposals(self, at: Optional[int] = None) -> Dict[ProposalId, Proposal]:
        """Unexecuted proposals still accepting votes at `at` (default: now)"""
        now = self.now() if at is None else at
        return {
            proposal_id: proposal
            for proposal_id, proposal in self.state.proposals.items()
            if not proposal.executed and proposal.is_voting_open(now)
        }

    def get_proposal_results(self, proposal_id: ProposalId, at: Optional[int] = None) -> Dict[str, Any]:
        """Get detailed proposal results"""
        now = self.now() if at is None else at
        proposal = self.get_proposal(proposal_id)
        tally = self.state.proposal_votes.get(proposal_id)

        return {
            'proposal_id': proposal_id,
            'to': proposal.to,
            'amount': proposal.amount,
            'vote_start': proposal.vote_start,
            'vote_end': proposal.vote_end,
            'executed': proposal.executed,
            'voting_open': proposal.is_voting_open(now),
            'for_weight': tally.for_weight,
            'against_weight': tally.against_weight,
            'quorum': self.quorum,
            'quorum_reached': self.rules.quorum_reached(tally),
            'accepted': self.rules.is_accepted(tally),
            'total_voters': len(self.state.votes.voters(proposal_id)),
        }
