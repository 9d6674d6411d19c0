from .position_sizer import PositionSizer, SizingResult
from .trailing import trail_stop

__all__ = ["PositionSizer", "SizingResult", "trail_stop"]
