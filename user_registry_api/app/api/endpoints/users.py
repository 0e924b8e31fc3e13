"""
User endpoints.

One route per operation, each bound to a single HTTP method; any other
method on the same path is answered with 405 by the router before the
handler or the store is reached.  Missing or malformed input is
rejected with 400 by the validation handler registered in ``main``.
Store failures surface as 500 through the ``StoreError`` handler.

The route functions are plain ``def`` so FastAPI runs them in its
thread pool; SQLite calls never block the event loop.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from user_registry_api.app.api.deps import get_user_service
from user_registry_api.app.core.exceptions import NotFoundError
from user_registry_api.app.schemas.user import UserCreate, UserRead, UserUpdate
from user_registry_api.app.services.user_service import UserService

router = APIRouter()


@router.post("/add", response_model=UserRead)
def add_user(
    user: UserCreate,
    service: UserService = Depends(get_user_service),
) -> UserRead:
    """Create a user and return it with its newly assigned ``uuid``."""
    return service.create_user(user)


@router.get("/get", response_model=UserRead)
def get_user(
    uid: str = Query(..., alias="id", min_length=1),
    service: UserService = Depends(get_user_service),
) -> UserRead:
    """Fetch a single user by external identifier."""
    try:
        return service.get_user(uid)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/list", response_model=List[UserRead])
def list_users(service: UserService = Depends(get_user_service)) -> List[UserRead]:
    """Return all users, unfiltered and unpaginated."""
    return service.list_users()


@router.put("/update", response_model=UserRead)
def update_user(
    user: UserUpdate,
    service: UserService = Depends(get_user_service),
) -> UserRead:
    """Replace the profile fields of the user named by ``uuid`` in the body."""
    try:
        return service.update_user(user)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/delete")
def delete_user(
    uid: str = Query(..., alias="id", min_length=1),
    service: UserService = Depends(get_user_service),
) -> Response:
    """Delete a user.

    Unknown identifiers are not an error: the response is the same
    empty 200 and no record is visible afterwards either way.
    """
    service.delete_user(uid)
    return Response(status_code=status.HTTP_200_OK)
