"""
HTTP API for the Ignis front-desk service.
"""
