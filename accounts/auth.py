import base64
import json
import os
from typing import Any, Dict, Optional

import firebase_admin
from django.conf import settings
from firebase_admin import auth as fb_auth
from firebase_admin import credentials


_FIREBASE_INIT_ERROR: str = ''


def firebase_init_error() -> str:
    return _FIREBASE_INIT_ERROR


def _app_options() -> Dict[str, str]:
    """databaseURL / storageBucket for the default app, from settings."""
    options: Dict[str, str] = {}
    database_url = (getattr(settings, 'FIREBASE_DATABASE_URL', '') or '').strip()
    bucket = (getattr(settings, 'FIREBASE_STORAGE_BUCKET', '') or '').strip()
    if database_url:
        options['databaseURL'] = database_url
    if bucket:
        options['storageBucket'] = bucket
    return options


def _load_credentials():
    path = (os.getenv('FIREBASE_CREDENTIALS_JSON_PATH') or os.getenv('GOOGLE_APPLICATION_CREDENTIALS') or '').strip()
    if path:
        return credentials.Certificate(path)

    b64 = (os.getenv('FIREBASE_CREDENTIALS_JSON_B64') or '').strip()
    if not b64:
        return None
    data = json.loads(base64.b64decode(b64).decode('utf-8'))
    return credentials.Certificate(data)


def ensure_firebase_initialized() -> bool:
    global _FIREBASE_INIT_ERROR
    if firebase_admin._apps:
        return True

    try:
        cred = _load_credentials()
        if cred is None:
            _FIREBASE_INIT_ERROR = 'Missing FIREBASE_CREDENTIALS_JSON_B64'
            return False
        firebase_admin.initialize_app(cred, _app_options() or None)
        _FIREBASE_INIT_ERROR = ''
        return True
    except Exception as e:
        # Keep message minimal to avoid leaking credential contents
        _FIREBASE_INIT_ERROR = f"{e.__class__.__name__}: {str(e)}".strip()
        return False


def verify_firebase_id_token(token: str) -> tuple[Optional[dict], Optional[str], Optional[int]]:
    """Verify a Firebase ID token.

    Returns: (claims, error_detail, http_status)
    """
    tok = (token or '').strip()
    if not tok:
        return None, 'Missing bearer token', 401

    if not ensure_firebase_initialized():
        detail = 'Firebase admin not initialized'
        if _FIREBASE_INIT_ERROR:
            detail = f"{detail}: {_FIREBASE_INIT_ERROR}"
        return None, detail, 503

    try:
        claims = fb_auth.verify_id_token(tok)
        if not isinstance(claims, dict):
            return None, 'Invalid token', 401
        return claims, None, None
    except Exception:
        return None, 'Invalid token', 401


def get_bearer_token(request) -> str:
    auth_header = request.META.get('HTTP_AUTHORIZATION', '')
    if auth_header:
        parts = auth_header.split(' ', 1)
        if len(parts) == 2 and parts[0].strip().lower() == 'bearer':
            return parts[1].strip()

    if not getattr(settings, 'DEBUG', False):
        return ''

    if request.method in ('POST', 'PUT', 'PATCH'):
        body: Any = {}
        try:
            body = request.data or {}
        except Exception:
            body = {}
        if isinstance(body, dict):
            for key in ('id_token', 'token'):
                token = (body.get(key) or '').strip()
                if token:
                    return token

    return (request.GET.get('id_token') or request.GET.get('token') or '').strip()
