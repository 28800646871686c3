"""Sandboxed snippet evaluation."""

from .evaluator import Evaluator, prepare_source
from .sandbox import JsSandbox, decode_value

__all__ = ["Evaluator", "prepare_source", "JsSandbox", "decode_value"]
