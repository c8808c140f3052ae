"""Shared services and request dependencies for the Web API."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from studyhub.auth.errors import AuthError
from studyhub.auth.identity import FirebaseIdentityProvider, IdentityProvider
from studyhub.auth.service import AuthService, AuthSession
from studyhub.config.app_config import AppConfig
from studyhub.db.documents import DocumentStore, FirestoreDocumentStore, SqliteDocumentStore
from studyhub.firebase_app import get_firebase_app
from studyhub.llm.client import LLMClient, LLMConfig
from studyhub.storage.object_storage import (
    FirebaseObjectStorage,
    LocalObjectStorage,
    ObjectStorage,
)

logger = structlog.get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


@dataclass
class AppServices:
    """Everything a request handler needs, built once per app."""

    config: AppConfig
    store: DocumentStore
    storage: ObjectStorage
    auth: AuthService
    firebase_app: Any = None
    llm_client: LLMClient | None = field(default=None)

    def get_llm_client(self) -> LLMClient:
        if self.llm_client is None:
            self.llm_client = LLMClient(config=LLMConfig.from_dict(self.config.llm))
        return self.llm_client


def build_services(config: AppConfig) -> AppServices:
    """Wire the configured backends together."""
    needs_firebase = (
        config.backend.documents == "firestore" or config.backend.storage == "firebase"
    )
    firebase_app = get_firebase_app(config.firebase) if needs_firebase else None

    if config.backend.documents == "firestore":
        store: DocumentStore = FirestoreDocumentStore(app=firebase_app)
    else:
        store = SqliteDocumentStore(Path(config.backend.db_path))

    if config.backend.storage == "firebase":
        storage: ObjectStorage = FirebaseObjectStorage(
            app=firebase_app, bucket_name=config.firebase.storage_bucket
        )
    else:
        storage = LocalObjectStorage(config.backend.storage_dir)

    identity: IdentityProvider = FirebaseIdentityProvider(
        api_key=config.firebase.get_api_key() or "",
        emulator_host=config.firebase.auth_emulator_host,
        app=firebase_app,
    )

    logger.info(
        "services_built",
        documents=config.backend.documents,
        storage=config.backend.storage,
        auth_emulator=bool(config.firebase.auth_emulator_host),
    )
    return AppServices(
        config=config,
        store=store,
        storage=storage,
        auth=AuthService(identity, store),
        firebase_app=firebase_app,
    )


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_llm_client(services: AppServices = Depends(get_services)) -> LLMClient:
    return services.get_llm_client()


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    services: AppServices = Depends(get_services),
) -> AuthSession | None:
    """The signed-in user, or None when no bearer token is sent."""
    if credentials is None:
        return None
    return services.auth.resolve_session(credentials.credentials)


def get_current_user(
    user: AuthSession | None = Depends(get_optional_user),
) -> AuthSession:
    if user is None:
        raise AuthError("auth/invalid-id-token", "Sign in required.")
    return user

