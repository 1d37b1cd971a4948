"""
Interview slot booking and reschedule negotiation engine.
"""

__version__ = "1.0.0"
