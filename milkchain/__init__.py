"""
MilkChain
=========
Dairy supply chain management: suppliers, delivery partners, farmers and
customers, with daily milk allocations reconciled against deliveries.
"""

__version__ = "1.0.0"
