"""
services/auth_admin_service.py

Admin calls against the hosted auth provider (invite, recovery email,
user lookup and deletion). Requires the service-role key.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.utils.exceptions import AuthProviderError

logger = logging.getLogger(__name__)


class AuthAdminService:

    def __init__(self) -> None:
        self.base_url = f"{settings.SUPABASE_URL}/auth/v1"
        self.timeout = settings.PROVIDER_TIMEOUT_SECONDS

    def _headers(self) -> Dict[str, str]:
        key = settings.SUPABASE_SERVICE_ROLE_KEY
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.request(method, f"{self.base_url}{path}", headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error("Auth provider unreachable (%s %s): %s", method, path, e)
            raise AuthProviderError(str(e)) from e

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            message = body.get("msg") or body.get("message") or body.get("error_description") or resp.text[:200]
            logger.warning("Auth provider %s %s -> %s: %s", method, path, resp.status_code, message)
            raise AuthProviderError(message, status_code=resp.status_code)

        if not resp.content:
            return {}
        return resp.json()

    def invite_user_by_email(
        self,
        email: str,
        data: Optional[Dict[str, Any]] = None,
        redirect_to: Optional[str] = None
    ) -> Dict[str, Any]:
        params = {"redirect_to": redirect_to} if redirect_to else None
        user = self._request("POST", "/invite", json={"email": email, "data": data or {}}, params=params)
        logger.info("Invite sent to %s", email)
        return user

    def send_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        self._request("POST", "/recover", json={"email": email}, params=params)
        logger.info("Recovery email sent to %s", email)

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Scan the admin user list; the provider has no lookup-by-email."""
        target = (email or "").strip().lower()
        page = 1
        while True:
            body = self._request("GET", "/admin/users", params={"page": page, "per_page": 200})
            users = body.get("users", []) if isinstance(body, dict) else body
            for user in users:
                if (user.get("email") or "").lower() == target:
                    return user
            if len(users) < 200:
                return None
            page += 1

    def delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/admin/users/{user_id}")
        logger.info("Auth user deleted: %s", user_id)


auth_admin_service = AuthAdminService()
