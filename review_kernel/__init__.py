"""
Review Kernel - GL account review workflow

Accounts pass through a configured sequence of reviewer roles:
- One stage per approval
- Rejection returns the account to the first stage as a mismatch
- Append-only audit trail per account
"""

__version__ = "0.1.0"
