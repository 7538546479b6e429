"""
Billing Kernel

Pure value types and infrastructure shared by the billing engines:
- Closed currency set (EUR, USD, AED, DZD) with the DZD pivot
- Decimal-only Money and exchange-rate sets
- Activity windows for assignments and employment spans
- Injectable clock, typed errors, structured logging
"""

__version__ = "0.1.0"
