"""
OAuth2 password-grant token exchange.

Used by the generic classifier, the regional classifier in oauth2 mode and
the Record Cleaner client. Tokens are fetched per request and never cached.
"""

import logging

import httpx

from species_proxy.core.exceptions import UpstreamUnavailableError


logger = logging.getLogger(__name__)


async def fetch_password_grant_token(
    http: httpx.AsyncClient,
    url: str,
    username: str,
    password: str,
    timeout: float,
    service: str = 'token service',
) -> str:
    """
    Exchange a username and password for an access token.

    Args:
        http: Shared HTTP client
        url: Token endpoint
        username: Client username
        password: Client password
        timeout: Request timeout in seconds
        service: Name used in error messages

    Returns:
        The access token

    Raises:
        UpstreamUnavailableError: On transport failure or a response without access_token
    """
    data = {
        'grant_type': 'password',
        'username': username,
        'password': password,
        'scope': '',
    }

    try:
        response = await http.post(url, data=data, timeout=timeout)
    except httpx.HTTPError as e:
        raise UpstreamUnavailableError(service, url, f'token request failed: {e}') from e

    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamUnavailableError(
            service, url, f'token response is not JSON (HTTP {response.status_code})'
        ) from e

    token = payload.get('access_token') if isinstance(payload, dict) else None
    if not token:
        raise UpstreamUnavailableError(
            service, url, f'authentication failed (HTTP {response.status_code})'
        )

    logger.debug(f'Obtained access token from {url}')
    return token
