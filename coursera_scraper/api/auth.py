"""
Resolves the account behind a CAUTH session token.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

import aiohttp

from coursera_scraper.exceptions import AuthenticationError
from coursera_scraper.models.course import CredentialContext

if TYPE_CHECKING:
    from .client import MetadataClient

log = logging.getLogger(__name__)

IDENTITY_ENDPOINT = "adminUserPermissions.v1"
AUTH_FAILURE_HINT = "Unable to authenticate. Make sure you set the CAUTH value correctly."


class IdentityResolver:
    """
    Performs the identity lookup for the metadata client.

    A missing identity element is the only signal the platform gives for an
    invalid or expired session token.
    """

    def __init__(self, api_client: "MetadataClient"):
        """
        Initializes the resolver.

        Args:
            api_client: A reference to the owning MetadataClient instance.
        """
        self._api_client = api_client

    async def resolve_identity(self, credential: CredentialContext) -> str:
        """
        Looks up the account id the session token belongs to.

        Args:
            credential: The credential context holding the session token.

        Returns:
            The account (user) id.

        Raises:
            AuthenticationError: If no identity element is returned.
        """
        log.debug("Resolving identity for the supplied CAUTH token...")
        try:
            status, payload = await self._api_client.api_call(
                IDENTITY_ENDPOINT, credential, q="my"
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AuthenticationError(f"{e}. {AUTH_FAILURE_HINT}") from e

        elements = payload.get("elements") if 200 <= status < 300 else None
        account_id = None
        if isinstance(elements, list) and elements and isinstance(elements[0], dict):
            account_id = elements[0].get("id")

        if not account_id:
            log.debug(f"Identity lookup returned HTTP {status} without an element.")
            raise AuthenticationError(AUTH_FAILURE_HINT)

        log.info(f"Authenticated as user [cyan]{account_id}[/cyan].")
        return str(account_id)
