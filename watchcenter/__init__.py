"""
Disaster Watch Center alert engine.

Evaluates incoming emergency events against user alert rules and
delivers matching alerts over email, SMS and webhook channels.
"""

__version__ = "0.1.0"
