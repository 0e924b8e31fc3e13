"""
Configuration, logging, database access and domain errors.
"""
