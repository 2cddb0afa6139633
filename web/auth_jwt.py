from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from django.conf import settings

bearer_scheme = HTTPBearer()


def decode_token(token: str) -> dict:
    secret_key = getattr(settings, "JWT_SECRET_KEY", None) or settings.SECRET_KEY
    algorithm = getattr(settings, "JWT_ALGORITHM", "HS256")
    return jwt.decode(token, secret_key, algorithms=[algorithm])


# Depende del token tipo Bearer en la cabecera Authorization
def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    if not (payload.get("user_id") or payload.get("sub")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    return payload


def require_theater_access(current_user: dict, theater_id: str) -> None:
    """El token debe traer el teatro en `theater_ids` (o ser superusuario)."""
    if current_user.get("is_superuser"):
        return
    allowed = {str(t) for t in current_user.get("theater_ids") or []}
    if str(theater_id) not in allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No access to this theater")


def session_key_for(current_user: dict) -> str:
    return f"user:{current_user.get('user_id') or current_user.get('sub')}"
