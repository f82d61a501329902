"""Glue package used by the scanner tests."""
