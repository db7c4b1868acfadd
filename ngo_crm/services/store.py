"""Common behaviour of the entity stores.

A store is a process-wide cache of one table: empty until ``fetch_all``,
then kept in step with the backend by applying each write locally once the
backend has acknowledged it. Failures set ``error``; nothing local changes
before the backend confirms.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from ngo_crm.db.base import GatewayInterface
from ngo_crm.errors import CrmError, RemoteError

logger = logging.getLogger(__name__)


class RemoteStore:
    """Loading/error bookkeeping shared by every store."""

    def __init__(self, gateway: GatewayInterface):
        self.gateway = gateway
        self.is_loading = False
        self.error: Optional[str] = None

    @contextmanager
    def _request(self, failure: str) -> Iterator[None]:
        """Wrap one remote operation.

        Sets ``error`` and re-raises on failure; unexpected exceptions are
        re-raised as RemoteError so callers only handle CrmError.
        """
        self.is_loading = True
        self.error = None
        try:
            yield
        except CrmError as e:
            logger.error(f"{failure}: {e}")
            self.error = str(e) or failure
            raise
        except Exception as e:
            logger.error(f"{failure}: {e}")
            self.error = str(e) or failure
            raise RemoteError(self.error) from e
        finally:
            self.is_loading = False
