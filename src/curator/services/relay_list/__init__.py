"""NIP-65 relay list import.

See Also:
    [sync_relay_list][curator.services.relay_list.service.sync_relay_list]:
        Query, pick the newest list, apply it to the configuration.
"""

from .configs import RelayListConfig
from .service import sync_relay_list


__all__ = ["RelayListConfig", "sync_relay_list"]
