#!/usr/bin/env python3
"""
Example: voting weight is read when the vote is cast, not when the
proposal is created
"""

from governor import Governor, GovernanceToken, ExecutionEnvironment, VoteType

def main():
    print("=== Live Voting Weight Demo ===")
    print()

    token = GovernanceToken.create("alice", 1_000, "Governance", "GOV")
    token.transfer("alice", "bob", 300)

    env = ExecutionEnvironment(caller="alice", contract_balance=5_000)
    governor = Governor(token, 50, env)

    first = governor.propose("grantee", 1_000, 30)
    second = governor.propose("grantee", 2_000, 30)
    print(f"🗳️  Proposals {first} and {second} open for 30 minutes")
    print(f"   Alice: {token.balance_of('alice')} tokens, Bob: {token.balance_of('bob')} tokens")
    print()

    governor.vote(first, VoteType.AGAINST)
    print(f"   Alice votes AGAINST {first}: {governor.get_proposal_vote(first)}")

    # Same tokens, second proposal
    governor.vote(second, VoteType.FOR)
    print(f"   Alice votes FOR {second}: {governor.get_proposal_vote(second)}")

    print()
    print("🔄 Alice moves 600 tokens to Bob")
    token.transfer("alice", "bob", 600)

    env.set_caller("bob")
    governor.vote(first, VoteType.FOR)
    print(f"   Bob votes FOR {first}: {governor.get_proposal_vote(first)}")
    print()

    results = governor.get_proposal_results(first)
    print(f"📊 Proposal {first}: {results['for_weight']}% for, "
          f"{results['against_weight']}% against of {token.total_supply()} supply")
    print("   Tokens were counted twice because weight is not snapshotted")

if __name__ == "__main__":
    main()
