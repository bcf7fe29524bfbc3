"""Change detection and the per-item publish/update pipelines."""

from __future__ import annotations

from .changes import ChangeSet, ItemChange, detect_changes, retry_candidates, validate_feed
from .collections import (
    CollectionCache,
    CollectionReconciler,
    CollectionResult,
    CollectionRule,
    desired_rules,
)
from .context import SyncContext
from .inventory import compute_levels, merge_levels, prepare_levels, validate_levels
from .merge import CategoryReport, MergeReport, merge_entry
from .metafields import MarketplaceField, MetafieldDefinitionCache
from .outcome import ItemOutcome, StepResult
from .product import ProductBuilder
from .publish import PublishPipeline
from .runner import SyncRunner, SyncRunResult
from .update import UpdatePipeline

__all__ = [
    "CategoryReport",
    "ChangeSet",
    "CollectionCache",
    "CollectionReconciler",
    "CollectionResult",
    "CollectionRule",
    "ItemChange",
    "ItemOutcome",
    "MarketplaceField",
    "MergeReport",
    "MetafieldDefinitionCache",
    "ProductBuilder",
    "PublishPipeline",
    "StepResult",
    "SyncContext",
    "SyncRunResult",
    "SyncRunner",
    "UpdatePipeline",
    "compute_levels",
    "detect_changes",
    "desired_rules",
    "merge_entry",
    "merge_levels",
    "prepare_levels",
    "retry_candidates",
    "validate_feed",
    "validate_levels",
]
