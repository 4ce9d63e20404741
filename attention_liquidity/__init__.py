"""
Retail attention vs. weekly liquidity and risk.

Daily pricing panel -> weekly liquidity/risk features -> merge with weekly
search interest -> fixed-effects + Newey-West panel regressions.
"""

__version__ = "0.1.0"
