"""
Data Models for the Upload Workflow

Dataclass-based models shared by the authentication, discovery, transfer
and finalize phases.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import SessionStateError


class AccountStatus(Enum):
    """Connectivity status of a linked platform account"""
    PENDING = "PENDING"
    CONNECTED = "CONNECTED"
    FAILED = "FAILED"


class SessionState(Enum):
    """Upload session lifecycle states"""
    CREATED = "created"
    AUTHENTICATED = "authenticated"
    DISCOVERED = "discovered"
    TRANSFERRED = "transferred"
    LINKED = "linked"
    BUILT = "built"
    PUBLISHED = "published"
    FAILED = "failed"


# Forward-only progression; FAILED is reachable from any non-terminal state.
_PROGRESSION = [
    SessionState.CREATED,
    SessionState.AUTHENTICATED,
    SessionState.DISCOVERED,
    SessionState.TRANSFERRED,
    SessionState.LINKED,
    SessionState.BUILT,
    SessionState.PUBLISHED,
]
TERMINAL_STATES = {SessionState.PUBLISHED, SessionState.FAILED}


@dataclass(frozen=True)
class LinkedAccount:
    """Platform account credentials as read from the account store"""
    account_id: str
    login_id: str
    secret: str
    status: AccountStatus = AccountStatus.PENDING
    display_name: Optional[str] = None
    username: Optional[str] = None
    last_validated_at: Optional[datetime] = None

    @property
    def is_connected(self) -> bool:
        return self.status == AccountStatus.CONNECTED


@dataclass
class StudioConfig:
    """Connection settings for the creator platform API"""
    api_url: str
    login_path: str = "/api/authenticate"
    login_id_field: str = "loginId"
    secret_field: str = "password"
    token_field: str = "authToken"
    request_timeout: int = 30
    transfer_timeout: int = 3600
    chunk_size: int = 1024 * 1024
    user_agent: Optional[str] = None
    extra_headers: Dict[str, str] = field(default_factory=dict)

    def get_headers(self, token: Optional[str] = None) -> Dict[str, str]:
        """Get headers for platform API requests"""
        headers = {"Content-Type": "application/json"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        headers.update(self.extra_headers)
        if token:
            headers["Authorization"] = token
        return headers

    def url_for(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.api_url.rstrip('/')}/{path.lstrip('/')}"


@dataclass
class FinalizeSettings:
    """Endpoints and pricing for the link -> build -> publish chain"""
    link_path: str = "/api/assets/link"
    create_asset_path: str = "/api/assets"
    build_path: str = "/api/assets/{asset_id}/build/{category_id}"
    item_path: str = "/api/items"
    build_status_path: Optional[str] = None
    build_status_field: str = "status"
    build_ready_values: List[str] = field(default_factory=lambda: ["COMPLETED", "SUCCESS", "DONE"])
    price: int = 5
    currency: str = "ZEM"
    build_settle_seconds: float = 3.0
    publish_settle_seconds: float = 2.0
    build_poll_max_seconds: float = 60.0


@dataclass(frozen=True)
class EndpointCandidate:
    """One guessed upload-initiation contract tried during discovery"""
    name: str
    url: str
    method: str = "POST"
    payload: Dict[str, Any] = field(default_factory=dict)
    envelope: Tuple[str, ...] = ("result", "data")
    url_field: str = "uploadUrl"
    id_fields: Tuple[str, ...] = ("fileId", "id")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EndpointCandidate":
        kwargs = {
            "name": data.get("name") or data["url"],
            "url": data["url"],
            "method": str(data.get("method", "POST")).upper(),
            "payload": dict(data.get("payload") or {}),
        }
        if data.get("envelope") is not None:
            envelope = data["envelope"]
            kwargs["envelope"] = (envelope,) if isinstance(envelope, str) else tuple(envelope)
        if data.get("url_field"):
            kwargs["url_field"] = data["url_field"]
        if data.get("id_fields"):
            kwargs["id_fields"] = tuple(data["id_fields"])
        return cls(**kwargs)

    def render_payload(self, context: Dict[str, Any]) -> Dict[str, Any]:
        """Substitute ``{placeholder}`` tokens in string payload values"""
        return _render(self.payload, context)

    def extract_target(self, body: Any) -> Optional[Tuple[str, str]]:
        """Return ``(upload_url, transfer_id)`` when the body carries a usable target"""
        if not isinstance(body, dict):
            return None

        layers = [body]
        for key in self.envelope:
            wrapped = body.get(key)
            if isinstance(wrapped, dict):
                layers.append(wrapped)

        for layer in layers:
            upload_url = layer.get(self.url_field)
            if not isinstance(upload_url, str) or not upload_url.strip():
                continue
            for id_field in self.id_fields:
                transfer_id = layer.get(id_field)
                if transfer_id not in (None, ""):
                    return upload_url, str(transfer_id)
        return None


def _render(value: Any, context: Dict[str, Any]) -> Any:
    if isinstance(value, str):
        for key, replacement in context.items():
            value = value.replace("{" + key + "}", str(replacement))
        return value
    if isinstance(value, dict):
        return {k: _render(v, context) for k, v in value.items()}
    if isinstance(value, list):
        return [_render(v, context) for v in value]
    return value


@dataclass(frozen=True)
class UploadTarget:
    """Transfer target returned by a successful discovery"""
    upload_url: str
    transfer_id: str
    matched_endpoint: EndpointCandidate


@dataclass
class AuthResult:
    """Bearer token and profile returned by login"""
    token: str
    profile: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TransferResult:
    """Result of a direct byte transfer"""
    success: bool
    status_code: Optional[int] = None
    bytes_sent: int = 0
    elapsed_seconds: Optional[float] = None


@dataclass
class UploadSession:
    """Ephemeral state of one upload attempt. Never shared between attempts."""
    account_id: str
    file_name: str
    file_size: int
    category_key: str
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    token: Optional[str] = None
    category_id: Optional[str] = None
    target: Optional[UploadTarget] = None
    asset_id: Optional[str] = None
    state: SessionState = SessionState.CREATED
    failure_reason: Optional[str] = None
    history: List[SessionState] = field(default_factory=lambda: [SessionState.CREATED])
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_finalize(cls, transfer_id: str, category_id: str, token: str, file_name: str) -> "UploadSession":
        """Rebuild a session for a caller that already completed the transfer."""
        session = cls(account_id="", file_name=file_name, file_size=0, category_key="")
        session.bind_token(token)
        session.bind_category(category_id)
        session.advance(SessionState.AUTHENTICATED)
        session.target = UploadTarget(
            upload_url="",
            transfer_id=transfer_id,
            matched_endpoint=EndpointCandidate(name="caller", url=""),
        )
        session.advance(SessionState.DISCOVERED)
        session.advance(SessionState.TRANSFERRED)
        return session

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, new_state: SessionState) -> None:
        """Move to the next state in the progression"""
        if self.is_terminal:
            raise SessionStateError(
                f"Session {self.session_id[:8]} is already {self.state.value}"
            )
        if new_state == SessionState.FAILED:
            raise SessionStateError("Use fail() to mark a session as failed")

        expected = _PROGRESSION[_PROGRESSION.index(self.state) + 1]
        if new_state != expected:
            raise SessionStateError(
                f"Illegal transition {self.state.value} -> {new_state.value} "
                f"(expected {expected.value})"
            )
        self.state = new_state
        self.history.append(new_state)

    def fail(self, reason: str) -> None:
        if self.is_terminal:
            raise SessionStateError(
                f"Session {self.session_id[:8]} is already {self.state.value}"
            )
        self.state = SessionState.FAILED
        self.failure_reason = reason
        self.history.append(SessionState.FAILED)

    def bind_token(self, token: str) -> None:
        if self.token is not None and self.token != token:
            raise SessionStateError("Session token is already bound")
        self.token = token

    def bind_category(self, category_id: str) -> None:
        if self.category_id is not None and self.category_id != category_id:
            raise SessionStateError("Session category is already resolved")
        self.category_id = category_id


@dataclass
class PrepareResult:
    """Phase 1 outcome handed back to the caller"""
    success: bool
    message: Optional[str] = None
    error_type: Optional[str] = None
    token: Optional[str] = None
    upload_url: Optional[str] = None
    transfer_id: Optional[str] = None
    category_id: Optional[str] = None
    matched_endpoint: Optional[str] = None
    session: Optional[UploadSession] = None


@dataclass
class FinalizeResult:
    """Phase 3 outcome"""
    success: bool
    message: str
    error_type: Optional[str] = None
    asset_id: Optional[str] = None
    build_confirmed: bool = False


@dataclass
class UploadResult:
    """Overall result of an end-to-end upload"""
    success: bool
    message: Optional[str] = None
    error_type: Optional[str] = None
    session_id: Optional[str] = None
    state: Optional[SessionState] = None
    asset_id: Optional[str] = None
    matched_endpoint: Optional[str] = None
    transfer_result: Optional[TransferResult] = None
    total_time_seconds: Optional[float] = None


@dataclass
class ValidationResult:
    """File validation result"""
    is_valid: bool
    error_message: Optional[str] = None
    file_path: Optional[str] = None
    validation_type: Optional[str] = None
