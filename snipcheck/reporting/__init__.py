"""Report output."""

from .report_writer import build_record, iter_records, print_summary

__all__ = ["build_record", "iter_records", "print_summary"]
