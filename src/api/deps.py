import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.adapters.clock import SystemClock
from src.adapters.scheduler_loop import PublicationSchedulerLoop
from src.adapters.sqlite.store import SQLiteStore
from src.api.auth_utils import token_user_id
from src.api.envelope import ApiError
from src.components.discussion import DiscussionComponent
from src.components.lifecycle import LifecycleComponent
from src.domain.entities import User
from src.domain.errors import UNAUTHORIZED
from src.domain.policy import PolicyEngine
from src.ports.clock import ClockPort
from src.rules.loader import load_rules
from src.rules.models import Rules


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("NEWSDESK_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "newsdesk.db")
        self.rules_path = Path(
            os.environ.get("NEWSDESK_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.migrations_dir = Path(
            os.environ.get("NEWSDESK_MIGRATIONS_DIR", str(self.base_dir / "migrations"))
        )
        self.scheduler_enabled = _env_flag("NEWSDESK_SCHEDULER_ENABLED")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Store ---
def get_store(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLiteStore:
    return SQLiteStore(settings.db_path, timeout=rules.ops.db_busy_timeout_seconds)


# --- Services ---
def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> ClockPort:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Component Services ---
def get_lifecycle(
    store: SQLiteStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
    clock: ClockPort = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> LifecycleComponent:
    """Get lifecycle component."""
    return LifecycleComponent(
        store=store,
        policy=policy,
        clock=clock,
        article_rules=rules.articles,
        scheduling_rules=rules.scheduling,
    )


def get_discussion(
    store: SQLiteStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
    clock: ClockPort = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> DiscussionComponent:
    """Get discussion component."""
    return DiscussionComponent(store=store, policy=policy, clock=clock, rules=rules.comments)


def get_scheduler_loop(request: Request) -> PublicationSchedulerLoop | None:
    """Background loop started by the app lifespan, if enabled."""
    return getattr(request.app.state, "scheduler", None)


# --- Auth ---
# Tokens are issued out of band (`newsdesk issue-token`)
bearer_scheme = HTTPBearer(auto_error=False)
BearerCredentials = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def _extract_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    # Cookie first (HttpOnly), then Authorization header
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        return cookie_token.split(" ", 1)[1]
    return credentials.credentials if credentials else None


def _resolve_user(token: str, store: SQLiteStore) -> User:
    user_id = token_user_id(token)
    if user_id is None:
        raise ApiError(UNAUTHORIZED, "Invalid token")

    with store.read() as uow:
        user = uow.users.get_by_id(user_id)
    if not user:
        raise ApiError(UNAUTHORIZED, "User not found")
    if user.status != "active":
        raise ApiError(UNAUTHORIZED, "Inactive user")
    return user


def get_current_user(
    request: Request,
    credentials: BearerCredentials,
    store: SQLiteStore = Depends(get_store),
) -> User:
    token = _extract_token(request, credentials)
    if not token:
        raise ApiError(UNAUTHORIZED, "Not authenticated")
    return _resolve_user(token, store)


def get_optional_user(
    request: Request,
    credentials: BearerCredentials,
    store: SQLiteStore = Depends(get_store),
) -> User | None:
    """Anonymous access is allowed; a present but bad token is still rejected."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    return _resolve_user(token, store)
