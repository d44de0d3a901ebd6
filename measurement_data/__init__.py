"""
Measurement Data

Ingests delimited measurement files, validates them, computes per-file
summary statistics and stores the result.
"""

__version__ = "1.0.0"
