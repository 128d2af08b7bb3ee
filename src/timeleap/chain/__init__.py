"""
Chain - On-chain interaction layer for the Timeleap staking client.

Provides an async JSON-RPC client, ABI management, and transaction
utilities for interacting with the staking contracts.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
