"""
ptacore - Plain Text Accounting core

The journal data model, commodity arithmetic and historical pricer that sit
underneath a plain-text-accounting workflow:

1. Journal text -> Posting graph -> journal text (lossless enough to round-trip)
2. Currency-aware decimal arithmetic with explicit rounding
3. Point-in-time conversion between commodities

DESIGN PRINCIPLES:
1. Values are immutable; every operation returns a new value
2. Errors are typed and raised synchronously, never coerced
3. Parsed precision is what gets written back
"""

__version__ = "1.0.0"
__author__ = "ptacore maintainers"
