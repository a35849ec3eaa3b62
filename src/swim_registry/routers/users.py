"""Registrant CRUD and listing endpoints"""

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, EmailStr, Field
from sqlmodel import Session

from swim_registry.models.database import get_db, get_today
from swim_registry.models.user import User
from swim_registry.services.errors import RegistryError
from swim_registry.services.listing_service import ListingParams, ListingService
from swim_registry.services.user_service import UserService
from swim_registry.utils.age import calculate_age

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

# Largest id a 64-bit integer primary key can hold
MAX_USER_ID = 2**63 - 1


class UserRequest(BaseModel):
    first_name: str = Field(..., min_length=1, description="First name")
    last_name: str = Field(..., min_length=1, description="Last name")
    email: EmailStr = Field(..., description="Email address, unique per user")
    date_naissance: str = Field(
        ...,
        min_length=1,
        description="Birth date",
        json_schema_extra={"example": "2015-04-23"},
    )
    niveau_natation: str = Field(
        ...,
        min_length=1,
        description="Swim level label",
        json_schema_extra={"example": "Débutant"},
    )


class UserResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    date_naissance: str
    age: int = Field(..., description="Derived from date_naissance at read time")
    niveau_natation: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User, today: date) -> "UserResponse":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            date_naissance=user.date_naissance or "",
            age=calculate_age(user.date_naissance, today),
            niveau_natation=user.niveau_natation or "",
            created_at=user.created_at,
        )


class UsersResponse(BaseModel):
    users: List[UserResponse] = Field(default_factory=list)
    total: int
    page: int
    limit: int
    total_pages: int


class MessageResponse(BaseModel):
    message: str


def _http_error(error: RegistryError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.detail)


@router.get("", response_model=UsersResponse, summary="List users")
async def list_users(
    search: Optional[str] = Query(None, description="Substring of name or email"),
    filter_niveau: Optional[str] = Query(None, description="Exact swim level"),
    filter_age_min: Optional[str] = Query(None, description="Minimum age"),
    filter_age_max: Optional[str] = Query(None, description="Maximum age"),
    page: Optional[str] = Query(None, description="Page number, from 1"),
    limit: Optional[str] = Query(None, description="Page size, 1 to 100"),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    List users, most recent first, with search, filters and pagination.

    Malformed pagination values fall back to page 1 and 10 per page, and
    malformed age bounds are ignored.
    """
    params = ListingParams.from_query(
        search=search,
        filter_niveau=filter_niveau,
        filter_age_min=filter_age_min,
        filter_age_max=filter_age_max,
        page=page,
        limit=limit,
    )
    listing_service = ListingService(UserService(db), today=today)

    try:
        listing = listing_service.list_users(params)
    except RegistryError as e:
        raise _http_error(e)

    return UsersResponse(
        users=[UserResponse.from_user(user, today) for user in listing.records],
        total=listing.total_count,
        page=listing.page,
        limit=listing.page_size,
        total_pages=listing.total_pages,
    )


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(
    user_id: int = Path(..., ge=-MAX_USER_ID - 1, le=MAX_USER_ID),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    try:
        user = UserService(db).get(user_id)
    except RegistryError as e:
        raise _http_error(e)
    return UserResponse.from_user(user, today)


@router.post(
    "", response_model=UserResponse, status_code=201, summary="Create a user"
)
async def create_user(
    request: UserRequest,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    try:
        user = UserService(db).insert(request.model_dump())
    except RegistryError as e:
        raise _http_error(e)
    return UserResponse.from_user(user, today)


@router.put("/{user_id}", response_model=UserResponse, summary="Update a user")
async def update_user(
    request: UserRequest,
    user_id: int = Path(..., ge=-MAX_USER_ID - 1, le=MAX_USER_ID),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    try:
        user = UserService(db).update(user_id, request.model_dump())
    except RegistryError as e:
        raise _http_error(e)
    return UserResponse.from_user(user, today)


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete a user")
async def delete_user(
    user_id: int = Path(..., ge=-MAX_USER_ID - 1, le=MAX_USER_ID),
    db: Session = Depends(get_db),
):
    try:
        UserService(db).delete(user_id)
    except RegistryError as e:
        raise _http_error(e)
    return MessageResponse(message="User deleted successfully")
