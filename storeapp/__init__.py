"""
Store management backend: catalog, stock batches, customers, vendors,
sales invoices and payment ledgers.
"""

__version__ = "1.0.0"
