from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.dependencies.auth import get_current_user_id
from app.schemas.auth import (
    UserCreate,
    UserLogin,
    GoogleAuthRequest,
    AppleAuthRequest,
    TokenResponse,
    UserResponse,
)
from app.services import identity
from app.services.federated import GOOGLE, APPLE, verify_google_token, verify_apple_token
from app.services.users import get_user
from app.utils.auth import create_access_token

router = APIRouter()


def _token_response(user) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.email),
        user=UserResponse.from_user(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """Create an email/password account and sign it in."""
    user = identity.register(db, user_data.email, user_data.password)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    user = identity.login(db, credentials.email, credentials.password)
    return _token_response(user)


@router.post("/google", response_model=TokenResponse)
def google_sign_in(request: GoogleAuthRequest, db: Session = Depends(get_db)):
    """
    Exchange a Google ID token for an access token of this API.
    Creates the account on first sign-in, links Google to an existing email account otherwise.
    """
    claims = verify_google_token(request.id_token)
    user = identity.authenticate_federated(db, GOOGLE, claims)
    return _token_response(user)


@router.post("/apple", response_model=TokenResponse)
def apple_sign_in(request: AppleAuthRequest, db: Session = Depends(get_db)):
    """Exchange an Apple identity token for an access token of this API."""
    claims = verify_apple_token(request.identity_token, request.full_name)
    user = identity.authenticate_federated(db, APPLE, claims)
    return _token_response(user)


@router.get("/me", response_model=UserResponse)
def me(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Current account, without credentials."""
    return UserResponse.from_user(get_user(db, user_id))
