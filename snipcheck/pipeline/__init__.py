"""Verification pipeline."""

from .verify import CancellationToken, Verifier

__all__ = ["CancellationToken", "Verifier"]
