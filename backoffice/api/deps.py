from functools import lru_cache
from typing import Dict, Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from backoffice.common.config import load_config
from backoffice.core.approval.kinds import EntityKind, build_kinds
from backoffice.core.config import Settings, get_settings
from backoffice.core.rbac.checker import Actor
from backoffice.core.security import bypass_actor, decode_token
from backoffice.db.session import SessionLocal

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache
def get_entity_kinds() -> Dict[str, EntityKind]:
    """Entity kinds with YAML overrides applied."""
    settings = get_settings()
    config = load_config(settings.entities_config_path)
    return build_kinds(config.entities)


def get_current_actor(
    token: str = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> Actor:
    """Get the acting user from the bearer token's claims."""
    if settings.bypass_auth:
        return bypass_actor(settings)

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    actor = decode_token(token, settings)
    if not actor:
        raise credentials_exception
    return actor
