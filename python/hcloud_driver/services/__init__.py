"""
hcloud_driver.services

Aggregator import for the two components a host wires together:
- ResourceAggregator (inventory -> option lists)
- ConfigurationReconciler (host record <-> NodeConfiguration)
plus the notifier capability the reconciler reports load failures to.
"""

from hcloud_driver.services.aggregator import CatalogLoadResult, ResourceAggregator
from hcloud_driver.services.notifications import LoggingNotifier, Notifier
from hcloud_driver.services.reconciler import ConfigurationReconciler

__all__ = [
    "CatalogLoadResult",
    "ResourceAggregator",
    "ConfigurationReconciler",
    "LoggingNotifier",
    "Notifier",
]
