from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from jose import JWTError, jwt

from backoffice.core.config import Settings, get_settings
from backoffice.core.rbac.checker import Actor


USERNAME_CLAIMS = ("username", "cognito:username", "email", "sub")
GROUPS_CLAIM = "cognito:groups"


def create_access_token(
    username: str,
    roles: Iterable[str] = (),
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Create a signed JWT carrying the username and Cognito groups."""
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))

    to_encode = {
        "sub": username,
        "username": username,
        GROUPS_CLAIM: list(roles),
        "exp": expire,
        "token_use": "access",
    }
    if settings.jwt_issuer:
        to_encode["iss"] = settings.jwt_issuer
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str, settings: Optional[Settings] = None) -> Optional[Actor]:
    """Decode and validate a JWT. Returns the actor if valid."""
    settings = settings or get_settings()
    options = {"verify_iss": bool(settings.jwt_issuer), "verify_aud": False}
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            issuer=settings.jwt_issuer,
            options=options,
        )
    except JWTError:
        return None

    username = next((payload[c] for c in USERNAME_CLAIMS if payload.get(c)), None)
    if not username:
        return None

    groups = payload.get(GROUPS_CLAIM) or []
    if isinstance(groups, str):
        groups = [groups]
    return Actor.from_claims(str(username), groups)


def bypass_actor(settings: Optional[Settings] = None) -> Actor:
    """Actor used when authentication is bypassed for local development."""
    settings = settings or get_settings()
    return Actor(username=settings.bypass_username, roles=settings.bypass_roles_set)
