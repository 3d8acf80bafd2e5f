"""Collapser: fold records that describe the same thing into one entry."""
