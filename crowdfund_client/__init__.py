"""Local web client for the crowdfunding smart contract."""

__version__ = "0.1.0"
