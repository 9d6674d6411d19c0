from .registry import STRATEGIES, run_enabled, run_strategy

__all__ = ["STRATEGIES", "run_enabled", "run_strategy"]
