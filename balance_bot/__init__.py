"""
Balance Bot - Source Package

Watches SimpleFIN account balances and notifies configured recipients
through an Apprise gateway whenever a balance genuinely changes.

DESIGN PRINCIPLES:
1. Exactly one notification per real change
2. First observation is a baseline, never an alert
3. One run at a time
4. Every document on disk is replaced atomically
5. Credentials never reach the logs
"""

__version__ = "1.0.0"
__author__ = "Balance Bot Team"
