# utils.py
import logging
import os
import numpy as np

def ensure_dir(path: str) -> str:
    os.makedirs(path, exist_ok=True)
    return path

def value_at(t_query, T, series) -> float:
    """Return value of `series` at time closest to t_query."""
    return float(series[np.argmin(np.abs(np.asarray(T) - t_query))])

def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
