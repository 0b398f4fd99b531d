"""
Savings Ledger - Source Package

Bookkeeping core for a personal finance tracker: a category registry,
a ledger of income/expense transactions, and savings goals whose
balances are derived from their contributions.

DESIGN PRINCIPLES:
1. Every mutation is one atomic unit of work
2. Fail early, fail visibly
3. No silent corrections (the goal balance floor is logged when it applies)
4. Every mutation is auditable
5. Storage is passed in, never a global
"""

__version__ = "1.0.0"
__author__ = "Savings Ledger Team"
