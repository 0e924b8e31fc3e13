"""
API package containing the routers.

``router.py`` exposes a top-level ``router`` which includes every
domain-specific router from ``endpoints``.
"""
