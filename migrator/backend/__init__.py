# CUI // SP-CTI
"""Neutral backend interface targeted by converted source code."""
from migrator.backend.filters import (  # noqa: F401
    DataFilter,
    DataReadOptions,
    FilterOp,
    OrderBy,
    apply_filter,
    apply_read_options,
    normalize_select,
)
from migrator.backend.interface import (  # noqa: F401
    AuthSession,
    AuthUser,
    Backend,
    BackendAuth,
    BackendData,
    BackendRpc,
    BackendStorage,
    StorageUploadOptions,
    Subscription,
)
from migrator.backend.settings import BackendSettings  # noqa: F401
