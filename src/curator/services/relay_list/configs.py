"""Relay-list import configuration.

See Also:
    [sync_relay_list][curator.services.relay_list.sync_relay_list]: The
        import that consumes this configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RelayListConfig(BaseModel):
    """Settings for importing the identity's NIP-65 relay list.

    Attributes:
        query_timeout: Seconds to wait for the relay list query.
    """

    query_timeout: float = Field(
        default=5.0, gt=0.0, le=120.0, description="Relay list query timeout in seconds"
    )
