"""
hcloud_driver/services/reconciler.py

ConfigurationReconciler keeps the host's configuration record and the typed
NodeConfiguration in step:

  - inbound:  record changed by the host      => derive_internal_from_external()
  - outbound: internal state changed and valid => project_external_from_internal()
  - every internal change is validated and reported to on_validity_change
  - a location change refetches server types and drops a stale selection

Two plain flags keep the directions from re-triggering each other: state
written by an inbound sync is never projected back, and a host notification
caused by our own outbound write is ignored.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, MutableMapping, Optional

from hcloud_driver.models.node_config import (
    DecodeFailure,
    NodeConfiguration,
    decode_external_record,
    encode_node_configuration,
    validate_node_configuration,
)
from hcloud_driver.models.options import (
    ResourceCatalog,
    ResourceKind,
    selectable_values,
)
from hcloud_driver.services.aggregator import ResourceAggregator
from hcloud_driver.services.notifications import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

NOTIFY_TITLE = "Hetzner Cloud"
NOTIFY_TIMEOUT_MS = 10000


class ConfigurationReconciler:
    """Owns the internal NodeConfiguration and the ResourceCatalog for one node form.

    Args:
        record: The host's configuration record. Read and written in place,
            never replaced.
        aggregator: Source of option lists.
        notifier: Receives catalog-load failure notices. Defaults to a logger.
        on_validity_change: Called with the validity after every state change.
    """

    def __init__(
        self,
        record: MutableMapping[str, Any],
        aggregator: ResourceAggregator,
        *,
        notifier: Optional[Notifier] = None,
        on_validity_change: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self._record = record
        self._aggregator = aggregator
        self._notifier: Notifier = notifier or LoggingNotifier()
        self._on_validity_change = on_validity_change

        self._state = NodeConfiguration()
        self._problems: List[str] = validate_node_configuration(self._state)
        self._catalog = ResourceCatalog()
        self._pending_loads = 0

        self._inbound_active = False
        self._outbound_active = False
        self._server_type_request = 0

    # ------------------------------
    # Read-only views
    # ------------------------------
    @property
    def state(self) -> NodeConfiguration:
        return self._state.model_copy(deep=True)

    @property
    def catalog(self) -> ResourceCatalog:
        return self._catalog

    @property
    def loading(self) -> bool:
        return self._pending_loads > 0

    @property
    def is_valid(self) -> bool:
        return not self._problems

    @property
    def problems(self) -> List[str]:
        return list(self._problems)

    # ------------------------------
    # State transitions
    # ------------------------------
    def _set_state(self, new_state: NodeConfiguration, project: bool = True) -> None:
        self._state = new_state
        self._problems = validate_node_configuration(new_state)
        valid = not self._problems
        if self._on_validity_change is not None:
            self._on_validity_change(valid)
        if project and valid and not self._inbound_active:
            self.project_external_from_internal()

    def derive_internal_from_external(self) -> bool:
        """Re-derive the internal state from the host record.

        A record that fails to decode resets the state to an empty (invalid)
        configuration. Ignored while an outbound write is in progress.

        Returns:
            bool: True if the derived location differs from the previous one.
        """
        if self._outbound_active:
            logger.debug("Ignoring record change caused by our own outbound sync.")
            return False

        previous_location = self._state.location
        outer_inbound = self._inbound_active
        self._inbound_active = True
        try:
            decoded = decode_external_record(self._record)
            if isinstance(decoded, DecodeFailure):
                logger.warning(
                    "Configuration record could not be decoded: %s",
                    "; ".join(decoded.errors),
                )
                decoded = NodeConfiguration()
            self._set_state(decoded)
        finally:
            self._inbound_active = outer_inbound
        return decoded.location != previous_location

    def project_external_from_internal(self) -> bool:
        """Write the internal state into the host record if it is valid.

        Returns:
            bool: True if the record was written.
        """
        if self._inbound_active or not self.is_valid:
            return False

        self._outbound_active = True
        try:
            for key, value in encode_node_configuration(self._state).items():
                self._record[key] = value
        finally:
            self._outbound_active = False
        return True

    async def handle_external_change(self) -> None:
        """Host entry point for a record change: derive, then refetch server types on a new location."""
        if self.derive_internal_from_external():
            await self.refresh_server_types(self._state.location)

    async def update_field(self, name: str, value: Any) -> bool:
        """Apply one user edit. Returns the resulting validity."""
        return await self.update_fields(**{name: value})

    async def update_fields(self, **changes: Any) -> bool:
        """Apply user edits to the internal state.

        Raises:
            ValueError: On an unknown field name or a value of the wrong type.
        """
        unknown = set(changes) - set(NodeConfiguration.model_fields)
        if unknown:
            raise ValueError(f"Unknown configuration field(s): {sorted(unknown)}")

        previous_location = self._state.location
        new_state = NodeConfiguration.model_validate(
            {**self._state.model_dump(), **changes}
        )
        if new_state.location == previous_location:
            self._set_state(new_state)
            return self.is_valid

        # The record only receives a new location once its server types are known.
        self._set_state(new_state, project=False)
        if await self.refresh_server_types(new_state.location):
            self.project_external_from_internal()
        return self.is_valid

    # ------------------------------
    # Catalog
    # ------------------------------
    async def refresh_server_types(self, location: Optional[str]) -> bool:
        """Refetch server types for `location` and drop a selection that is no longer offered.

        Returns:
            bool: False if a later refresh superseded this one and its result was discarded.
        """
        self._server_type_request += 1
        request = self._server_type_request

        options = await self._aggregator.get_server_types(location)
        if request != self._server_type_request:
            logger.debug("Discarding server types for %s: superseded.", location)
            return False

        self._catalog = self._catalog.with_options(ResourceKind.server_type, options)
        selected = self._state.server_type
        if selected is not None and selected not in selectable_values(options):
            logger.info(
                "Server type %s is not available in %s; clearing selection.",
                selected,
                location,
            )
            self._set_state(self._state.model_copy(update={"server_type": None}))
        return True

    async def load_catalog(self) -> ResourceCatalog:
        """Load every option list at once; server types are filtered by the current location.

        Sends a single notification when nothing could be loaded (error) or
        when no locations are available (warning).
        """
        self._server_type_request += 1
        request = self._server_type_request

        self._pending_loads += 1
        try:
            result = await self._aggregator.load_catalog(self._state.location)
        finally:
            self._pending_loads -= 1

        catalog = result.catalog
        if request != self._server_type_request:
            catalog = catalog.with_options(
                ResourceKind.server_type,
                self._catalog.options(ResourceKind.server_type),
            )
        self._catalog = catalog

        if result.all_failed:
            self._notifier.error(
                NOTIFY_TITLE,
                "Failed to load Hetzner Cloud resources. Please check your credentials.",
                NOTIFY_TIMEOUT_MS,
            )
        elif not result.has_locations:
            self._notifier.warning(
                NOTIFY_TITLE,
                "No locations available. Please check your Hetzner Cloud API token.",
                NOTIFY_TIMEOUT_MS,
            )
        return self._catalog


__all__ = ["ConfigurationReconciler"]
