"""Runtime helpers for the toncell library"""

from .errors import ErrorCode, TonCellError

__all__ = [
    "ErrorCode",
    "TonCellError",
]
