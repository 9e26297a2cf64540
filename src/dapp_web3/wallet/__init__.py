"""Wallet helpers for dapps.

Wraps an ``AsyncWeb3`` client with guarded transaction sends, verified
personal/typed-data signatures, ETH and ERC20 balance reads, and network
metadata with Etherscan links.
"""
