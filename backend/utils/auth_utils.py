import os
from typing import Any, Dict, List

from dotenv import load_dotenv
from fastapi import HTTPException, status, Request
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

load_dotenv()

# === Token Configuration ===
# Tokens are issued by the identity provider in front of the back office and
# signed with a shared secret. Override these in the environment.
JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE") or None

# Members of this group may approve orders and edit anyone's orders.
ADMIN_GROUP = os.getenv("ADMIN_GROUP", "admin")


def get_current_user(request: Request) -> Dict[str, Any]:
    """
    FastAPI dependency that decodes the bearer token into the acting-user dict.

    Usage:
        @router.get("/secure-data")
        def secure_endpoint(user: dict = Depends(get_current_user)):
            ...
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing",
        )

    # The token is expected to be in the format "Bearer <token>"
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    token = parts[1]
    options = {"verify_aud": JWT_AUDIENCE is not None}
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            options=options,
        )
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except JWTClaimsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {e}"
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {e}"
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject"
        )
    return payload


def get_user_identifier(user: Dict[str, Any]) -> str:
    """Stable identifier stored in created_by/updated_by and the *_by stamps."""
    return str(user.get("sub") or user.get("email") or user.get("username") or "unknown")


def get_user_groups(user: Dict[str, Any]) -> List[str]:
    groups = user.get("groups") or user.get("cognito:groups") or []
    if isinstance(groups, str):
        groups = [groups]
    return list(groups)


def is_admin(user: Dict[str, Any]) -> bool:
    return ADMIN_GROUP in get_user_groups(user)
