"""
Option Calculator

Interactive terminal tool for building and pricing multi-leg option/equity orders against
the Tradier brokerage API, plus simple analytics (expected move, strike windowing around spot).
"""

__version__ = "0.1.0"
