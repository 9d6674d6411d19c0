"""
Signal arbitration: pick one actionable signal per evaluation tick.
"""

import logging
from typing import Iterable, Optional

from multistrat.core.models import Signal

logger = logging.getLogger(__name__)


def select_best(signals: Iterable[Signal]) -> Optional[Signal]:
    """
    Highest-confidence actionable signal.

    HOLDs and signals without a confidence are ignored. Ties go to the
    signal that came first, so callers control precedence through ordering.
    Returns None when nothing is actionable.
    """
    best = None
    for signal in signals:
        if not signal.is_actionable:
            continue
        if best is None or signal.confidence > best.confidence:
            best = signal

    if best is not None:
        logger.debug(
            "Selected %s %s (confidence=%.2f): %s",
            best.strategy_name, best.signal_type.value, best.confidence, best.reason,
        )
    return best
