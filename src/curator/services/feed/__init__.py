"""Feed loading: paginated relay reads reconciled with deletion requests.

See Also:
    [FeedLoader][curator.services.feed.loader.FeedLoader]: One page per call.
    [FeedView][curator.services.feed.view.FeedView]: Displayed records and
        pagination state.
    [FeedConfig][curator.services.feed.configs.FeedConfig]: Page sizes and timeout.
"""

from .configs import FeedConfig
from .loader import FeedLoader, FeedPage, sort_records
from .view import FeedView


__all__ = ["FeedConfig", "FeedLoader", "FeedPage", "FeedView", "sort_records"]
