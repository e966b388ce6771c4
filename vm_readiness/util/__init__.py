"""
Utility functions and helpers.

Modules:
- files: Reading structured documents and writing output files
- hashing: SHA256 fingerprints for inventory files
- numbers: Half-up rounding for reported sizes and scores
"""
