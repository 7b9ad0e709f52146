"""Deletion service configuration models.

See Also:
    [delete_event][curator.services.deletion.delete_event]: The flow that
        consumes this configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from curator.core.metrics import MetricsConfig
from curator.nips.nip09 import DEFAULT_DELETION_REASON


class DeletionConfig(BaseModel):
    """Deletion request settings.

    Attributes:
        reason: Content of the kind-5 request.
        verify_timeout: Seconds to wait for the current relay to return the
            signed request before marking the deletion unconfirmed.
        verify: Whether to query the current relay after publishing.
    """

    reason: str = Field(default=DEFAULT_DELETION_REASON, description="Deletion request content")
    verify_timeout: float = Field(
        default=5.0, gt=0.0, le=120.0, description="Verification query timeout in seconds"
    )
    verify: bool = Field(default=True, description="Verify against the current relay")
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics configuration",
    )
