"""Byte-budget image resizing."""
