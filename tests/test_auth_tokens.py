import os
import unittest
from unittest.mock import patch

import jwt

from oricloud.api.auth import issue_access_token, principal_from_authorization, principal_from_token
from oricloud.config import get_settings
from oricloud.core.errors import AuthenticationError


class AuthTokenTests(unittest.TestCase):
    def setUp(self):
        self._env = patch.dict(os.environ, {"AUTH_ENABLED": "true", "AUTH_JWT_SECRET": "unit-secret"})
        self._env.start()
        get_settings.cache_clear()

    def tearDown(self):
        self._env.stop()
        get_settings.cache_clear()

    def test_token_roundtrip(self):
        principal = principal_from_token(issue_access_token(7, ttl_minutes=5))
        self.assertEqual(principal.id, "7")
        self.assertEqual(principal.user_id, 7)

    def test_expired_token_is_rejected(self):
        token = jwt.encode({"sub": "1", "iat": 0, "exp": 1}, "unit-secret", algorithm="HS256")
        with self.assertRaises(AuthenticationError):
            principal_from_token(token)

    def test_foreign_signature_is_rejected(self):
        token = jwt.encode({"sub": "1"}, "another-secret", algorithm="HS256")
        with self.assertRaises(AuthenticationError):
            principal_from_token(token)

    def test_missing_header_is_rejected(self):
        with self.assertRaises(AuthenticationError):
            principal_from_authorization(None)
        with self.assertRaises(AuthenticationError):
            principal_from_authorization("Basic abc")

    def test_disabled_auth_is_unrestricted(self):
        with patch.dict(os.environ, {"AUTH_ENABLED": "false"}):
            get_settings.cache_clear()
            principal = principal_from_authorization(None)
        self.assertIsNone(principal.user_id)
