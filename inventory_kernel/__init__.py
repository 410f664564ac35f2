"""
Inventory Kernel - distribution transaction engine

Per-location inventory ledger and distribution transactions with:
- Non-negative ledger quantities under concurrency
- All-or-nothing multi-line commits
- Minimal line-item diffs on update
- Organization-wide threshold alerts
- Reminder and change-notice decisions
"""

__version__ = "0.1.0"
