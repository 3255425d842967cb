"""
Request identity dependencies
Resolves the user id that ratings, favorites and recommendations are keyed on
"""
from fastapi import HTTPException, Request
from typing import Dict, Any, Optional
import firebase_admin
from firebase_admin import auth as fb_auth, credentials
import json
import logging
import os
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ✅ CLOCK SKEW TOLERANCE (in seconds), the most firebase-admin accepts
CLOCK_SKEW_TOLERANCE = 60

DEFAULT_USER_ID = "demo-user"
USER_ID_HEADER = "x-user-id"


def _auth_required() -> bool:
    return os.getenv("AUTH_REQUIRED", "False").lower() == "true"


def init_firebase() -> bool:
    """
    Initialize Firebase Admin if credentials are available.
    Returns True when bearer tokens can be verified.
    """
    if firebase_admin._apps:
        return True

    options = {"projectId": os.getenv("FIREBASE_PROJECT_ID")}

    # Production: FIREBASE_CREDENTIALS env var holds the service account JSON
    firebase_creds_json = os.getenv("FIREBASE_CREDENTIALS")
    if firebase_creds_json:
        cred = credentials.Certificate(json.loads(firebase_creds_json))
        firebase_admin.initialize_app(cred, options)
        logger.info("✅ Firebase initialized from FIREBASE_CREDENTIALS env var")
        return True

    # Local development: serviceAccountKey.json
    if os.path.exists("./serviceAccountKey.json"):
        cred = credentials.Certificate("./serviceAccountKey.json")
        firebase_admin.initialize_app(cred, options)
        logger.info("✅ Firebase initialized from serviceAccountKey.json")
        return True

    logger.info("💡 Firebase not configured - using x-user-id header identity")
    return False


def _uid_from_claims(decoded: Dict[str, Any]) -> str:
    uid = decoded.get("uid") or decoded.get("user_id") or decoded.get("sub")
    if not uid:
        raise HTTPException(status_code=401, detail="Token has no user id")
    return str(uid)


def verify_bearer_token(id_token: str) -> Dict[str, Any]:
    """
    Verify Firebase ID token and return decoded claims
    ✅ With clock skew tolerance for server/client time mismatch; the signature is always checked
    """
    try:
        return fb_auth.verify_id_token(
            id_token,
            check_revoked=False,
            clock_skew_seconds=CLOCK_SKEW_TOLERANCE,
        )
    except fb_auth.ExpiredIdTokenError:
        raise HTTPException(status_code=401, detail="Token expired")
    except Exception as e:
        logger.warning(f"❌ Token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")


def get_current_user_id(request: Request) -> str:
    """
    Resolve the caller's user id:
    1. Bearer token (Firebase) when present
    2. x-user-id header, else demo-user, unless AUTH_REQUIRED=true
    """
    auth_header: Optional[str] = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        id_token = auth_header.split(" ", 1)[1].strip()
        return _uid_from_claims(verify_bearer_token(id_token))

    if _auth_required():
        raise HTTPException(status_code=401, detail="Missing bearer token")

    header_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    return header_id or DEFAULT_USER_ID
