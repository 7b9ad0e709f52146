"""Feed loader configuration models.

See Also:
    [FeedLoader][curator.services.feed.FeedLoader]: The loader that
        consumes this configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from curator.core.metrics import MetricsConfig


class FeedConfig(BaseModel):
    """Page sizes and timeout of a feed load.

    Attributes:
        page_size: ``limit`` of the target-kind filter; a full page means
            more records may exist.
        tombstone_limit: ``limit`` of the kind-5 filter sent alongside.
        query_timeout: Seconds allowed for the whole load, end marker included.
    """

    page_size: int = Field(default=50, ge=1, le=500, description="Records per page")
    tombstone_limit: int = Field(
        default=50, ge=1, le=500, description="Deletion requests fetched per load"
    )
    query_timeout: float = Field(
        default=15.0, gt=0.0, le=300.0, description="Feed load timeout in seconds"
    )
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics configuration",
    )
