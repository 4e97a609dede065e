from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer

from voltmatch.core.config import settings
from voltmatch.core.identity import Identity, ANONYMOUS

# tokens are minted by the identity provider; auto_error=False so a missing
# token reaches the engine as an empty identity
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

async def get_identity(token: Optional[str] = Depends(oauth2_scheme)) -> Identity:
    if not token:
        return ANONYMOUS
    data = decode_token(token)
    return Identity(user_id=str(data.get("sub") or ""), display_name=data.get("name") or "")
