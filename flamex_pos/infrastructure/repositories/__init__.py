"""
Repositories

SQLAlchemy implementations returning plain dicts serialized inside the
owning session.
"""
