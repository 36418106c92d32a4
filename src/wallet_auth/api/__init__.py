"""HTTP API for the Wallet Auth service."""
