"""Signer - wallet keys used to sign staking transactions."""
