"""
Application Layer

Request DTOs and the services that enforce the POS business rules before
delegating to the repositories.
"""
