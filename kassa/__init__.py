"""
Kassa - Source Package

Client-side engine for a cash / currency-exchange journal that mirrors
its entries into a remote spreadsheet ledger.

DESIGN PRINCIPLES:
1. Money is text until it is validated, then Decimal - never float
2. The list never waits for the network
3. A failed save stays visible until the user dismisses it
4. Every save attempt is auditable
5. The remote backend is swappable
"""

__version__ = "1.0.0"
__author__ = "Kassa Team"
