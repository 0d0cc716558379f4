"""
logalert - periodic log file watcher that emails matching lines
"""

__version__ = "1.0.0"
