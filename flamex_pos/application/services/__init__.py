"""
Application Services

One service per aggregate; each raises the exceptions in
``flamex_pos.infrastructure.utilities.exceptions`` on failure.
"""
