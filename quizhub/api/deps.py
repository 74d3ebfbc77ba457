"""
Request-scoped dependencies: the caller's identity
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from quizhub.exceptions import UnauthorizedError
from quizhub.utils.security import Identity, decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Identity:
    """Resolve the Bearer token into an Identity or fail with 401"""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    return decode_access_token(credentials.credentials)
