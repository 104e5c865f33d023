from __future__ import annotations

import os
from typing import Sequence

from google.auth.credentials import Credentials
from google.oauth2.service_account import Credentials as ServiceAccountCredentials


def _inline_service_account_info() -> dict[str, str] | None:
    client_email = os.getenv("GOOGLE_CLIENT_EMAIL") or os.getenv(
        "GOOGLE_SERVICE_ACCOUNT_EMAIL"
    )
    private_key = os.getenv("GOOGLE_PRIVATE_KEY") or os.getenv(
        "GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY"
    )
    if not client_email or not private_key:
        return None

    # Keys pasted into .env files usually carry literal "\n" sequences.
    return {
        "type": "service_account",
        "client_email": client_email,
        "private_key": private_key.replace("\\n", "\n"),
        "token_uri": "https://oauth2.googleapis.com/token",
    }


def _service_account_credentials(scopes: Sequence[str]) -> Credentials:
    creds_path = os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE") or os.getenv(
        "GOOGLE_APPLICATION_CREDENTIALS"
    )

    creds: Credentials
    if creds_path:
        creds = ServiceAccountCredentials.from_service_account_file(
            creds_path, scopes=list(scopes)
        )
    else:
        info = _inline_service_account_info()
        if info is None:
            raise RuntimeError(
                "Search Console credentials are not configured. Set "
                "GOOGLE_SERVICE_ACCOUNT_FILE (or GOOGLE_APPLICATION_CREDENTIALS), "
                "or GOOGLE_CLIENT_EMAIL and GOOGLE_PRIVATE_KEY."
            )
        creds = ServiceAccountCredentials.from_service_account_info(
            info, scopes=list(scopes)
        )

    subject = os.getenv("GOOGLE_IMPERSONATE_USER")
    if subject and hasattr(creds, "with_subject"):
        creds = creds.with_subject(subject)

    return creds


def get_google_credentials(scopes: Sequence[str]) -> Credentials:
    return _service_account_credentials(scopes)
