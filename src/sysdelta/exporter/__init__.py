"""Sinks for complete rounds of samples."""
