#!/usr/bin/env python3
"""
Complete demo of the token-weighted governor
"""

from governor import (
    Governor, GovernorError, GovernanceToken, ExecutionEnvironment, VoteType
)
from governor.config import Settings, configure_logging
from governor.keys import AccountKey

def main():
    settings = Settings.from_env()
    configure_logging("WARNING")

    print("=" * 60)
    print("🏛️  TOKEN-WEIGHTED GOVERNOR - COMPLETE DEMO")
    print("=" * 60)
    print()

    # Step 1: Setup
    print("🔧 STEP 1: Setting up token holders")
    print("-" * 40)

    holders = []
    for name, share in [("Alice", 45), ("Bob", 35), ("Carol", 20)]:
        key = AccountKey()
        holders.append({'name': name, 'key': key, 'account': key.account_id, 'share': share})
        print(f"✅ {name}: {key.account_id[:16]}... ({share}% of supply)")

    grantee = AccountKey().account_id
    print(f"✅ Grantee: {grantee[:16]}...")
    print()

    # Step 2: Deploy token and governor
    print("🏗️  STEP 2: Deploying governance token and governor")
    print("-" * 40)

    deployer = holders[0]['account']
    token = GovernanceToken.create(deployer, 100_000_000, "Treasury Vote", "TVOTE", 8)
    for holder in holders[1:]:
        token.transfer(deployer, holder['account'], token.total_supply() * holder['share'] // 100)

    env = ExecutionEnvironment(
        caller=deployer,
        block_timestamp=1_700_000_000,
        contract_balance=settings.initial_balance
    )
    governor = Governor(token, settings.quorum, env)

    print(f"✅ Token: {token.metadata.symbol} ({token.total_supply():,} units)")
    print(f"✅ Treasury balance: {env.balance():,}")
    print(f"✅ Quorum: {governor.quorum}% of supply")
    print()

    # Step 3: Proposals
    print("📝 STEP 3: Creating spending proposals")
    print("-" * 40)

    amount = env.balance() // 4
    proposal_id = governor.propose(grantee, amount, 60)
    proposal = governor.get_proposal(proposal_id)
    print(f"✅ Proposal {proposal_id}: pay {amount:,} to grantee")
    print(f"   Voting window: {proposal.vote_start} -> {proposal.vote_end}")

    try:
        governor.propose(grantee, env.balance(), 60)
        print("   ❌ UNEXPECTED: Whole treasury proposal accepted")
    except GovernorError as e:
        print(f"   ✅ EXPECTED FAILURE: {e.kind.value}")
    print()

    # Step 4: Voting
    print("🗳️  STEP 4: Voting")
    print("-" * 40)

    for holder, vote_type in zip(holders, [VoteType.AGAINST, VoteType.FOR, VoteType.FOR]):
        env.set_caller(holder['account'])
        env.advance_time(300)
        governor.vote(proposal_id, vote_type)
        weight = token.balance_of(holder['account']) * 100 // token.total_supply()
        print(f"   {holder['name']} votes {vote_type.value.upper()} ({weight}% weight)")

    env.set_caller(holders[1]['account'])
    try:
        governor.vote(proposal_id, VoteType.FOR)
    except GovernorError as e:
        print(f"   ✅ Bob votes again: {e.kind.value}")
    print()

    # Step 5: Execution
    print("⚡ STEP 5: Executing proposal")
    print("-" * 40)

    results = governor.get_proposal_results(proposal_id)
    print(f"   Weight FOR: {results['for_weight']}%")
    print(f"   Weight AGAINST: {results['against_weight']}%")
    print(f"   Quorum reached: {'✅' if results['quorum_reached'] else '❌'}")
    print(f"   Accepted: {'✅' if results['accepted'] else '❌'}")

    try:
        governor.execute(proposal_id)
        print(f"   ✅ Paid {amount:,} to grantee")
    except GovernorError as e:
        print(f"   ❌ FAILED: {e.kind.value}")

    try:
        governor.execute(proposal_id)
    except GovernorError as e:
        print(f"   ✅ Second execution: {e.kind.value}")
    print()

    # Final stats
    print("📊 Final Statistics:")
    print(f"   Treasury balance: {env.balance():,}")
    print(f"   Grantee balance: {env.balance_of(grantee):,}")
    print(f"   Proposals created: {governor.next_proposal_id()}")
    print(f"   Treasury transfers: {len(env.get_transfer_history())}")

if __name__ == "__main__":
    main()
