"""
                        GustoFlow

Restaurant operations backend: table tracking, order entry, kitchen
ticketing, billing, staff and customer records, backed by a remote
relational gateway with a local JSON fallback store and an interval
poller for near-real-time sync across roles.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
