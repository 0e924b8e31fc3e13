"""
Top-level API router.

Aggregates the domain routers.  The user endpoints live under
``/user`` to keep the paths existing clients already call.
"""

from fastapi import APIRouter

from .endpoints import users

router = APIRouter()

router.include_router(users.router, prefix="/user", tags=["users"])
