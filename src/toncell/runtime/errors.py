"""
TON Cell Error Model

This module provides the error handling framework for the toncell library.
Every error carries a numeric code grouped by the layer that raised it
(bit buffer, cell, graph, bag of cells, state init, address).
"""

from __future__ import annotations
import builtins
from typing import Optional, Dict, Any
from enum import IntEnum


class ErrorCode(IntEnum):
    """toncell error codes."""

    # Success
    OK = 0

    # General errors (1-99)
    UNKNOWN = 1
    INTERNAL = 2

    # Bit buffer errors (100-199)
    BIT_OVERFLOW = 100
    BIT_UNDERFLOW = 101

    # Cell errors (200-299)
    CELL_OVERFLOW = 200
    MALFORMED_EXOTIC_CELL = 201
    ABSENT_CELL = 202

    # Graph errors (300-399)
    CYCLIC_GRAPH = 300

    # Bag of cells errors (400-499)
    BOC_ERROR = 400
    UNKNOWN_FORMAT = 401
    INDEX_OUT_OF_RANGE = 402
    CHECKSUM_MISMATCH = 403

    # State init errors (500-599)
    MISSING_CODE_OR_DATA = 500

    # Address errors (600-699)
    INVALID_ADDRESS = 600


class TonCellError(Exception):
    """
    Base class for all toncell errors.

    Provides structured error information: a code, a message, optional
    details and the underlying exception, if any.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a toncell error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class OverflowError(TonCellError, builtins.OverflowError):
    """Bit buffer capacity exceeded, or a value does not fit its bit width."""

    def __init__(self, message: str = "Bit buffer overflow",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.BIT_OVERFLOW, details, cause)


class UnderflowError(TonCellError, builtins.EOFError):
    """Not enough bits left to read."""

    def __init__(self, message: str = "Bit buffer underflow",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.BIT_UNDERFLOW, details, cause)


class CellOverflowError(OverflowError):
    """Cell payload, reference count or depth exceeds protocol limits."""

    def __init__(self, message: str = "Cell overflow",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, details, cause)
        self.code = ErrorCode.CELL_OVERFLOW


class MalformedExoticCellError(TonCellError):
    """Exotic cell payload does not match its declared type."""

    def __init__(self, message: str = "Malformed exotic cell",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.MALFORMED_EXOTIC_CELL, details, cause)


class AbsentCellError(TonCellError):
    """Content of a hash-only absent cell was requested."""

    def __init__(self, message: str = "Absent cell has no content",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.ABSENT_CELL, details, cause)


class CyclicGraphError(TonCellError):
    """A cell is reachable from itself."""

    def __init__(self, message: str = "Cell graph contains a cycle",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.CYCLIC_GRAPH, details, cause)


class BocError(TonCellError):
    """Bag of cells encoding/decoding errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.BOC_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class UnknownFormatError(BocError):
    """Bad magic, or a header inconsistent with the buffer."""

    def __init__(self, message: str = "Unknown bag of cells format",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.UNKNOWN_FORMAT, details, cause)


class IndexOutOfRangeError(BocError, builtins.IndexError):
    """Dangling or misordered cell index."""

    def __init__(self, message: str = "Cell index out of range",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INDEX_OUT_OF_RANGE, details, cause)


class ChecksumMismatchError(BocError):
    """Integrity check failed."""

    def __init__(self, message: str = "Checksum mismatch",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.CHECKSUM_MISMATCH, details, cause)


class MissingCodeOrDataError(TonCellError):
    """State init needs at least one of code and data."""

    def __init__(self, message: str = "State init requires code or data",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.MISSING_CODE_OR_DATA, details, cause)


class InvalidAddressError(TonCellError, builtins.ValueError):
    """Address string or components are invalid."""

    def __init__(self, message: str = "Invalid address",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INVALID_ADDRESS, details, cause)


# Re-export key error types for convenience
__all__ = [
    "ErrorCode",
    "TonCellError",
    "OverflowError",
    "UnderflowError",
    "CellOverflowError",
    "MalformedExoticCellError",
    "AbsentCellError",
    "CyclicGraphError",
    "BocError",
    "UnknownFormatError",
    "IndexOutOfRangeError",
    "ChecksumMismatchError",
    "MissingCodeOrDataError",
    "InvalidAddressError",
]
