"""Maker/hedge market making bot for Hyperliquid perpetuals."""

__version__ = "0.1.0"
