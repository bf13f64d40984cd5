#!/usr/bin/env python3
# CUI // SP-CTI
"""The neutral ``backend`` interface that converted call sites target.

Rewritten source calls ``backend.auth``, ``backend.data``, ``backend.storage``
and ``backend.rpc``. These protocols describe that surface so adapters and
test doubles can be checked structurally.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Union

from migrator.backend.filters import DataReadOptions


@dataclass
class AuthUser:
    id: str
    email: Optional[str] = None


@dataclass
class AuthSession:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    user: Optional[AuthUser] = None

    @classmethod
    def from_provider(cls, session: Optional[dict]) -> Optional["AuthSession"]:
        """Map a provider session payload (snake_case keys) to an AuthSession."""
        if not session:
            return None
        user = session.get("user") or None
        return cls(
            access_token=session.get("access_token"),
            refresh_token=session.get("refresh_token"),
            expires_at=session.get("expires_at"),
            user=AuthUser(id=user["id"], email=user.get("email")) if user else None,
        )


@dataclass
class StorageUploadOptions:
    content_type: Optional[str] = None
    cache_control: Optional[str] = None
    upsert: bool = False


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class BackendAuth(Protocol):
    def sign_in(self, email: str, password: str) -> AuthSession: ...

    def sign_up(self, email: str, password: str) -> AuthSession: ...

    def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> None: ...

    def update_password(self, new_password: str) -> None: ...

    def sign_out(self) -> None: ...

    def get_user(self) -> Optional[AuthUser]: ...

    def get_session(self) -> Optional[AuthSession]: ...

    def on_auth_state_change(
        self, callback: Callable[[str, Optional[AuthSession]], None],
    ) -> Subscription: ...


class BackendData(Protocol):
    def create(self, entity: str, data: Dict[str, Any]) -> Dict[str, Any]: ...

    def read(
        self, entity: str, options: Optional[DataReadOptions] = None,
    ) -> Union[Dict[str, Any], List[Dict[str, Any]], None]: ...

    def upsert(
        self,
        entity: str,
        data: Union[Dict[str, Any], List[Dict[str, Any]]],
        on_conflict: Optional[str] = None,
    ) -> Union[Dict[str, Any], List[Dict[str, Any]]]: ...

    def update(self, entity: str, id: str, data: Dict[str, Any]) -> Dict[str, Any]: ...

    def delete(self, entity: str, id: str) -> None: ...


class BackendStorage(Protocol):
    def upload(
        self, bucket: str, path: str, file: bytes,
        options: Optional[StorageUploadOptions] = None,
    ) -> Dict[str, str]: ...

    def download(self, bucket: str, path: str) -> bytes: ...

    def remove(self, bucket: str, paths: Union[str, Sequence[str]]) -> None: ...

    def list(
        self, bucket: str, path: Optional[str] = None,
        limit: Optional[int] = None, offset: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]: ...

    def create_signed_url(self, bucket: str, path: str, expires_in_seconds: int) -> str: ...

    def get_public_url(self, bucket: str, path: str) -> str: ...


class BackendRpc(Protocol):
    def call(self, fn: str, params: Optional[Dict[str, Any]] = None) -> Any: ...


class Backend(Protocol):
    auth: BackendAuth
    data: BackendData
    storage: BackendStorage
    rpc: BackendRpc
