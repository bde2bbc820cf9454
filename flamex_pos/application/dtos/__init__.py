"""
Data Transfer Objects

Validated request and filter objects plus the response envelope.
"""
