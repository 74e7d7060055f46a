from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.features.auth.service import Account, AuthService
from app.core.security import decode_token
from app.shared.exceptions import CredentialsException


# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Account:
    """
    Dependency to get the authenticated patient or doctor.

    Args:
        credentials: HTTP Bearer credentials

    Returns:
        The account named by the token

    Raises:
        CredentialsException: If credentials are missing or invalid
    """
    if credentials is None:
        raise CredentialsException("Not authenticated")

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise CredentialsException("Invalid authentication credentials")

    account_id = payload.get("sub")
    user_type = payload.get("type")
    if account_id is None or user_type is None:
        raise CredentialsException("Invalid authentication credentials")

    account = await AuthService.get_account(user_type, account_id)
    if account is None:
        raise CredentialsException("Account not found")

    if not account.is_active:
        raise CredentialsException("Inactive account")

    return account
