"""Typed bindings for the staking contracts and the tokens they custody."""

from .base import Contract
from .staking import Bank, Manager, Repository, Stakes
from .tokens import ERC20, ERC721

__all__ = ["Contract", "Manager", "Stakes", "Bank", "Repository", "ERC20", "ERC721"]
