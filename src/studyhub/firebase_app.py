"""Firebase Admin app initialization.

One default app per process, shared by Firestore, Storage, Auth
(token revocation) and Cloud Messaging.
"""

from __future__ import annotations

import firebase_admin
import structlog
from firebase_admin import credentials

from studyhub.config.app_config import FirebaseConfig

logger = structlog.get_logger(__name__)


def get_firebase_app(config: FirebaseConfig) -> firebase_admin.App:
    """Return the default Firebase app, initializing it on first use.

    Uses a service-account file when ``credentials_path`` is set,
    otherwise Application Default Credentials (which also covers the
    emulators).
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {}
    if config.project_id:
        options["projectId"] = config.project_id
    if config.storage_bucket:
        options["storageBucket"] = config.storage_bucket

    if config.credentials_path:
        cred = credentials.Certificate(config.credentials_path)
    else:
        cred = credentials.ApplicationDefault()

    app = firebase_admin.initialize_app(cred, options or None)
    logger.info(
        "firebase.initialized",
        project_id=config.project_id,
        storage_bucket=config.storage_bucket,
        service_account=bool(config.credentials_path),
    )
    return app
