"""
Infrastructure Layer

Contains all external dependencies and implementations:
- Database models and engine management
- SQLAlchemy repositories
- Logging infrastructure
- Shared utilities
"""
