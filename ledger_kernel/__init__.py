"""
Ledger Kernel

The transactional core of a double-entry money ledger:
- All-or-nothing transaction boundary for multi-step writes
- Atomic funds transfer (one transfer row + two offsetting entries)
- Append-only entries; balances derive from entry history
"""

__version__ = "0.1.0"
