import logging

from fastapi import APIRouter, Depends, HTTPException, status

from marketplace.api.deps import get_auth
from marketplace.core.auth import AuthClient
from marketplace.core.security import get_current_user, get_token
from marketplace.db.base import get_store
from marketplace.schemas.user import LoginRequest, TokenResponse, UserCreate, UserResponse
from marketplace.store.base import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user: UserCreate,
    auth: AuthClient = Depends(get_auth),
    store: RecordStore = Depends(get_store),
):
    try:
        new_user = auth.sign_up(
            email=user.email,
            password=user.password,
            display_name=user.display_name,
            role=user.role,
            phone=user.phone,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    # providers start with an unapproved business profile
    if new_user["role"] == "provider":
        store.create(
            "providers",
            {
                "user_id": new_user["id"],
                "business_name": user.display_name,
                "services": [],
                "review_count": 0,
                "total_jobs": 0,
                "is_available": True,
                "status": "pending",
            },
        )

    return new_user


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, auth: AuthClient = Depends(get_auth)):
    token = auth.sign_in(credentials.email, credentials.password)
    return TokenResponse(access_token=token)


@router.get("/me", response_model=UserResponse)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(token: str = Depends(get_token), auth: AuthClient = Depends(get_auth)):
    auth.logout(token)
