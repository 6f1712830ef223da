"""Version of the SpongeWallet SDK, sent with every API request."""

__version__ = "0.2.0"
