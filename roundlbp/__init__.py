"""
roundlbp: round-based liquidity-bootstrap pools with a bonding-curve reward token.
"""

__version__ = "0.1.0"
