"""
Authentication endpoints
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db
from app.core.security import verify_password, create_access_token
from app.models.user import Usuario
from app.schemas.auth import LoginRequest, TokenResponse
from app.schemas.route import RouteRole
from app.services.route_service import USER_ADMIN_ROUTE, resolve_route_roles, user_can_access

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return JWT token

    Validates email and password, rejects inactive users.
    """
    user = db.query(Usuario).filter(Usuario.email == login_data.email).first()

    if not user or not user.contrasena or not verify_password(login_data.password, user.contrasena):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not user.activo:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    # JWT 'sub' claim must be a string; the email is the identity key
    access_token = create_access_token(data={"sub": user.email, "uid": user.id})
    logger.info("User %s logged in", user.email)

    return TokenResponse(access_token=access_token, token_type="bearer", email=user.email)


@router.get("/routes", response_model=List[RouteRole])
async def user_routes(
    email: Optional[str] = Query(None, description="User to resolve; defaults to the caller"),
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
):
    """
    Routes granted to a user, one entry per (route, role) pair

    Resolution runs entirely in the database, so it is not subject to the
    row limit of the generic table API. Resolving someone else's routes
    requires the user administration route.
    """
    target = email or current_user.email
    if target.lower() != current_user.email.lower() and not user_can_access(db, current_user.email, USER_ADMIN_ROUTE):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. None of your roles grants {USER_ADMIN_ROUTE}"
        )
    return resolve_route_roles(db, target)
