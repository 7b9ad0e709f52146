"""Publish a NIP-09 deletion request and hide the target optimistically.

Flow:
    1. Build the kind-5 request with [build_deletion_request][curator.nips.nip09.build_deletion_request]
       and sign it through the [Signer][curator.utils.keys.Signer].
    2. Publish it to every relay in
       [AppConfig.publish_targets()][curator.core.config.AppConfig.publish_targets].
    3. As soon as one relay accepts, record the local deletion so the
       target disappears from every view.
    4. Verify against the current relay and report the final status.

See Also:
    [DeletionLedger][curator.services.deletion.DeletionLedger]: Holds the
        hidden ids and runs the verification query.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from curator.core.exceptions import ConnectivityError, PublishRejectedError
from curator.core.logger import Logger
from curator.core.metrics import DELETIONS
from curator.nips.nip09 import build_deletion_request
from curator.utils.protocol import PublishResult

from .configs import DeletionConfig
from .ledger import DeletionStatus


if TYPE_CHECKING:
    from curator.core.config import AppConfig
    from curator.models.event import EventRecord
    from curator.utils.keys import Signer
    from curator.utils.protocol import RelayConnection

    from .ledger import DeletionLedger


_logger = Logger("curator.deletion")


@dataclass(frozen=True, slots=True)
class DeletionOutcome:
    """Result of [delete_event][curator.services.deletion.delete_event].

    Attributes:
        target_id: Id of the deleted event.
        tombstone: The signed kind-5 request.
        results: One publish result per target relay, in publish order.
        status: Final ledger status after verification.
    """

    target_id: str
    tombstone: EventRecord
    results: tuple[PublishResult, ...]
    status: DeletionStatus

    @property
    def accepted_by(self) -> list[str]:
        return [r.relay_url for r in self.results if r.accepted]

    @property
    def rejections(self) -> dict[str, str]:
        return {r.relay_url: r.reason for r in self.results if not r.accepted}

    @property
    def confirmed(self) -> bool:
        return self.status is DeletionStatus.CONFIRMED


async def _publish(
    connection: RelayConnection, record: EventRecord, relay_url: str
) -> PublishResult:
    try:
        return await connection.publish(record, relay_url)
    except ConnectivityError as e:
        return PublishResult(relay_url=relay_url, accepted=False, reason=str(e))


async def delete_event(  # noqa: PLR0913
    target: EventRecord,
    *,
    connection: RelayConnection,
    signer: Signer,
    ledger: DeletionLedger,
    app_config: AppConfig,
    config: DeletionConfig | None = None,
) -> DeletionOutcome:
    """Request deletion of *target* and hide it locally.

    Args:
        target: The event to delete; must be authored by the signer.
        connection: Relay access used for publishing.
        signer: Signs the deletion request.
        ledger: Receives the local deletion and runs verification.
        app_config: Supplies the publish targets and the current relay.
        config: Reason text and verification settings.

    Returns:
        The signed request, per-relay results, and the final status.

    Raises:
        ValueError: If *target* was not authored by the signer.
        PublishRejectedError: If no relay accepted the request. Nothing is
            recorded in that case.
    """
    config = config or DeletionConfig()
    if target.pubkey != signer.public_key:
        raise ValueError(f"Only the author can delete event {target.short_id}")

    tombstone = await signer.sign(build_deletion_request([target.id], config.reason))
    _logger.info(
        "deletion_signed", event_id=target.short_id, tombstone_id=tombstone.short_id
    )

    results: list[PublishResult] = []
    for relay_url in app_config.publish_targets():
        result = await _publish(connection, tombstone, relay_url)
        results.append(result)
        if not result.accepted:
            _logger.warning(
                "deletion_publish_failed",
                event_id=target.short_id,
                relay=relay_url,
                reason=result.reason,
            )

    if not any(r.accepted for r in results):
        if config.metrics.enabled:
            DELETIONS.labels(status="rejected").inc()
        raise PublishRejectedError(
            f"Deletion of {target.short_id} was rejected by every relay",
            reasons={r.relay_url: r.reason for r in results},
        )

    current_relay = app_config.current_relay
    ledger.record_local_deletion(
        target.id,
        tombstone_id=tombstone.id,
        relay_url=current_relay,
        author=tombstone.pubkey,
    )

    status = DeletionStatus.PENDING
    if config.verify:
        status = await ledger.verify(target.id, current_relay, config.verify_timeout)

    if config.metrics.enabled:
        DELETIONS.labels(status=status.value).inc()
    _logger.info(
        "deletion_completed",
        event_id=target.short_id,
        accepted=sum(1 for r in results if r.accepted),
        targets=len(results),
        status=status.value,
    )
    return DeletionOutcome(
        target_id=target.id,
        tombstone=tombstone,
        results=tuple(results),
        status=status,
    )
