"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules: ``core`` (configuration, logging, database, errors),
``schemas`` (request and response models), ``services`` (business
logic) and ``api`` (routers and endpoints).
"""

from .main import app  # noqa: F401
