"""
Rent Kernel

Rent accounting and cheque reconciliation for landlords:
- Rent schedule generation from lease terms
- Post-dated cheque lifecycle with payment derivation on clearance
- Oldest-due-first payment allocation with derived schedule status
- Lease lifecycle with non-overlap and derived property occupancy
"""

__version__ = "0.1.0"
