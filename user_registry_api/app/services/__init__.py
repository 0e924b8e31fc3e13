"""
Service layer.

Services encapsulate the business logic for a domain and are built
with an explicit ``Database`` so API handlers never touch SQL.
"""
