"""Check families run over parsed elements."""

from .logic import LogicAnalyzer

__all__ = ["LogicAnalyzer"]
