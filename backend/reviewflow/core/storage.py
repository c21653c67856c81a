"""Payload reference checks against the external file/link storage."""

import logging
from typing import Iterable
from urllib.parse import urlparse

from reviewflow.core.errors import PayloadUnavailableError

logger = logging.getLogger(__name__)


class PayloadStore:
    """
    Confirms that opaque payload and attachment references are usable.

    File bytes live in an external storage service. This class only checks
    the references handed to us before any row pointing at them is written.
    Deployments with a real storage backend replace ``payload_store`` with a
    subclass that asks that backend.
    """

    allowed_schemes = ("http", "https")

    async def ensure_available(self, refs: Iterable[str]) -> None:
        """
        Raise PayloadUnavailableError for the first unusable reference.

        Args:
            refs: File handles or external links
        """
        for ref in refs:
            if not isinstance(ref, str) or not ref.strip():
                raise PayloadUnavailableError(str(ref), "empty reference")
            parsed = urlparse(ref)
            if parsed.scheme and "://" in ref and parsed.scheme not in self.allowed_schemes:
                raise PayloadUnavailableError(ref, f"unsupported scheme '{parsed.scheme}'")
            if parsed.scheme in self.allowed_schemes and not parsed.netloc:
                raise PayloadUnavailableError(ref, "link has no host")
        logger.debug("Payload references confirmed")


# Global payload store instance
payload_store = PayloadStore()
