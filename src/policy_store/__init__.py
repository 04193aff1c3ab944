"""policy_store — persistence for access-control policies.

Policies are stored as primary records keyed by id, with derived
subject/resource indices that answer "which policies might apply to this
request" for an external authorization engine.
"""

from policy_store.backends import InMemoryBackend, KeyValueBackend
from policy_store.config import (
    BackendConfigSchema,
    StoreConfigSchema,
    create_backend,
    create_store,
)
from policy_store.exceptions import (
    AlreadyExistsError,
    ConfigError,
    CorruptRecordError,
    IndexWriteError,
    NotFoundError,
    PolicyStoreError,
    UnavailableError,
)
from policy_store.index import IndexDelta, IndexSlot, SecondaryIndex, reconcile
from policy_store.keys import IndexKind, KeySpace
from policy_store.manager import Manager
from policy_store.policy import Effect, Policy
from policy_store.resolver import (
    CandidateResolver,
    FullScanResolver,
    IndexedResolver,
    IndexStrategy,
)
from policy_store.store import IndexRebuildReport, PolicyStore

__all__ = [
    "AlreadyExistsError",
    "BackendConfigSchema",
    "CandidateResolver",
    "ConfigError",
    "CorruptRecordError",
    "Effect",
    "FullScanResolver",
    "InMemoryBackend",
    "IndexDelta",
    "IndexKind",
    "IndexRebuildReport",
    "IndexSlot",
    "IndexStrategy",
    "IndexWriteError",
    "IndexedResolver",
    "KeySpace",
    "KeyValueBackend",
    "Manager",
    "NotFoundError",
    "Policy",
    "PolicyStore",
    "PolicyStoreError",
    "SecondaryIndex",
    "StoreConfigSchema",
    "UnavailableError",
    "create_backend",
    "create_store",
    "reconcile",
]
