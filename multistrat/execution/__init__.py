from .arbitrator import select_best
from .evaluator import AccountState, OpenPositionsProvider, SignalEvaluator

__all__ = ["AccountState", "OpenPositionsProvider", "SignalEvaluator", "select_best"]
