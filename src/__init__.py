"""
Studio Ledger - Source Package

The AI transaction-entry core of an accounting assistant for
interior-design and construction project managers. Receipts and chat
messages are turned into structured income/expense records by
whichever configured LLM provider answers first.

DESIGN PRINCIPLES:
1. AI suggests → Human confirms → System verifies
2. Providers fail over in the user's priority order
3. Model output is untrusted and normalized, never believed
4. Every attempt must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Studio Ledger Team"
