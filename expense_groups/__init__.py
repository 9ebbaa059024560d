"""
Expense Groups - Installment Purchase Engine

Reconstructs installment purchases ("TV (2/3)") from a flat expense
collection and answers "which payments belong with this one?".

DESIGN PRINCIPLES:
1. Pure engine: no I/O, no shared state, rebuilt from scratch per snapshot
2. Never raise on record content; "no group" is an empty result
3. Bad data is reported, not corrected
4. Collaborators (currency rates) are injected, never global
"""

__version__ = "1.0.0"
__author__ = "Expense Groups Team"
