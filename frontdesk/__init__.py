"""
Ignis front-desk service: demo data lifecycle and queue status.
"""

__version__ = "0.1.0"
