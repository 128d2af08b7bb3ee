"""
Commands - CLI implementations for the staking client.

Each module corresponds to top-level CLI commands:
- stake:   Stake tokens (stake) or tokens plus an NFT (stake-nft)
- unstake: Withdraw everything once unlocked
- status:  Read a staker's position
"""
