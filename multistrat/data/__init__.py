from .loader import bars_from_dataframe, load_bars_csv

__all__ = ["bars_from_dataframe", "load_bars_csv"]
