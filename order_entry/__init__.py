"""
order_entry: PySide6 order-entry grid (purchase returns, quotations, sales)
over a line-item pricing and stock-allocation engine.
"""

__version__ = "0.1.0"
