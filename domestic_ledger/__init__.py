"""
Domestic Ledger - Source Package

A small personal ledger engine. It reads `tr` (transaction) and `ev`
(scheduled or recurring event) commands from a control file, turns due
events into transactions as their dates arrive, and keeps a JSON status
file with the treasury total and this month's income and expenses.

DESIGN PRINCIPLES:
1. One task mutates state; everything else posts messages
2. A bad command line is logged and dropped, never half-applied
3. Everything lives in memory for the lifetime of the process
4. Every state change is auditable
"""

__version__ = "1.0.0"
__author__ = "Domestic Ledger Team"
