"""
Results JSON to CSV Converter Package

This package converts a JSON array of academic result records into a CSV
file sorted by roll number, with one column per semester SGPA.
"""

from .models import ConversionFailure, ConversionOptions, ConversionResult, FailureReason
from .results2csv import (
    ConversionError,
    InputParseError,
    InputReadError,
    OutputWriteError,
    Results2CSV,
    convert,
    convert_async,
)

__all__ = [
    'Results2CSV',
    'convert',
    'convert_async',
    'ConversionOptions',
    'ConversionResult',
    'ConversionFailure',
    'FailureReason',
    'ConversionError',
    'InputReadError',
    'InputParseError',
    'OutputWriteError',
]
