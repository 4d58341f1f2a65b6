"""
waotp
=====
One-time passcode issuance and validation over WhatsApp.
"""

__version__ = "0.1.0"
