"""Task portal core: authorization policy, task and submission lifecycles, attendance ledger."""

__version__ = '0.1.0'
