"""Deposit Manager - clinic deposit expiry and report validation backend."""
