"""Spreadsheet purchase-order intake and validation service."""

__version__ = "0.3.0"
