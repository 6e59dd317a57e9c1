"""
Group Expense Splitter - Source Package

Tracks shared expenses for a group and works out who owes whom.

DESIGN PRINCIPLES:
1. The settlement engine is pure: plain data in, plain data out
2. Fail early at ingestion, never deep inside a calculation
3. No silent corrections
4. Every change and every computation is auditable
5. The document store is swappable
"""

__version__ = "1.0.0"
__author__ = "Group Expense Splitter Team"
