"""
API v1 user administration routes.

All endpoints require an ``Authorization: Bearer <access token>`` header.
"""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_current_user, get_user_administration
from src.api.models import (
    ErrorResponse,
    Metadata,
    PaginationMetadata,
    StatusResponse,
    UserCreateRequest,
    UserEnvelope,
    UserPageResponse,
    UserResponse,
    UserUpdateRequest,
)
from src.domain.users import UserAdministration

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(get_current_user)],
    responses={401: {"model": ErrorResponse, "description": "Invalid access token"}},
)

NOT_FOUND = {404: {"model": ErrorResponse, "description": "User not found"}}


@router.post(
    "",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse, "description": "Email and/or username already registered"}},
    summary="Create a user",
)
def create_user(
    request_data: UserCreateRequest,
    admin: UserAdministration = Depends(get_user_administration),
) -> UserEnvelope:
    user = admin.create_user(request_data.username, request_data.email, request_data.password)
    return UserEnvelope(
        metadata=Metadata(message="User created successfully"),
        user=UserResponse.from_user(user),
    )


@router.get("", response_model=UserPageResponse, summary="List users")
def list_users(
    page: int = Query(1, ge=1),
    items_per_page: int = Query(10, ge=1, le=100),
    admin: UserAdministration = Depends(get_user_administration),
) -> UserPageResponse:
    result = admin.list_users(page, items_per_page)
    return UserPageResponse(
        metadata=Metadata(message="Users fetched successfully"),
        users=[UserResponse.from_user(user) for user in result.users],
        pagination_metadata=PaginationMetadata(
            page_items=result.page_items,
            current_page=result.current_page,
            total_pages=result.total_pages,
            total_items=result.total_items,
        ),
    )


@router.get("/{user_id}", response_model=UserEnvelope, responses=NOT_FOUND, summary="Get a user")
def get_user(
    user_id: str,
    admin: UserAdministration = Depends(get_user_administration),
) -> UserEnvelope:
    return UserEnvelope(
        metadata=Metadata(message="User fetched successfully"),
        user=UserResponse.from_user(admin.get_user(user_id)),
    )


@router.patch(
    "/{user_id}",
    response_model=UserEnvelope,
    responses={**NOT_FOUND, 409: {"model": ErrorResponse, "description": "Already registered"}},
    summary="Update a user",
)
def update_user(
    user_id: str,
    request_data: UserUpdateRequest,
    admin: UserAdministration = Depends(get_user_administration),
) -> UserEnvelope:
    user = admin.update_user(
        user_id,
        username=request_data.username,
        email=request_data.email,
        password=request_data.password,
    )
    return UserEnvelope(
        metadata=Metadata(message="User updated successfully"),
        user=UserResponse.from_user(user),
    )


@router.delete("/{user_id}", response_model=StatusResponse, responses=NOT_FOUND, summary="Delete a user")
def delete_user(
    user_id: str,
    admin: UserAdministration = Depends(get_user_administration),
) -> StatusResponse:
    admin.delete_user(user_id)
    return StatusResponse(metadata=Metadata(message="User deleted successfully"))
