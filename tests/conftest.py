"""Shared fixtures: settings, signing keys and a fake model service."""

import base64
import json

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from codecloze.config import Settings
from codecloze.webhooks.security import compute_signature

WEBHOOK_SECRET = "it's-a-secret"
GATING_DEPLOYMENT = "gating-mini"
REVIEW_DEPLOYMENT = "review-large"

SAMPLE_DIFF = """diff --git a/app/auth.py b/app/auth.py
index 83db48f..bf269f4 100644
--- a/app/auth.py
+++ b/app/auth.py
@@ -10,7 +10,7 @@ def check(user):
-    if user is None or not user.active:
+    if not user.active:
         return False
@@ -40,3 +40,4 @@ def login(user):
     session.start(user)
+    session.commit()
diff --git a/README.md b/README.md
index 1111111..2222222 100644
--- a/README.md
+++ b/README.md
@@ -1 +1 @@
-Old title
+New title
"""

INVOCATION_PAYLOAD = {
    "action": "created",
    "comment": {"body": "@codecloze review"},
    "issue": {"number": 7, "pull_request": {}},
    "installation": {"id": 1},
    "repository": {"owner": {"login": "acme"}, "name": "widgets"},
}


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_key_pem(rsa_private_key) -> str:
    return rsa_private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@pytest.fixture
def settings(private_key_pem) -> Settings:
    return Settings(
        _env_file=None,
        github_webhook_secret=WEBHOOK_SECRET,
        github_app_id="12345",
        github_private_key_base64=base64.b64encode(private_key_pem.encode("ascii")).decode("ascii"),
        github_api_url="https://api.github.test",
        azure_openai_endpoint="https://example.openai.azure.com",
        azure_openai_api_key="azure-key",
        azure_openai_gating_deployment=GATING_DEPLOYMENT,
        azure_openai_review_deployment=REVIEW_DEPLOYMENT,
    )


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return compute_signature(secret, body)


def encode_payload(payload: dict) -> bytes:
    return json.dumps(payload).encode("utf-8")


class FakeLLM:
    """Stands in for LLMClient; answers per deployment and records calls.

    An answer may be a string (returned as completion text) or an exception
    instance (raised).
    """

    def __init__(self, gating="{\"review\": true}", review="{\"findings\": []}"):
        self.answers = {GATING_DEPLOYMENT: gating, REVIEW_DEPLOYMENT: review}
        self.calls = []

    async def complete(self, deployment, messages, max_output_tokens, text_format=None):
        self.calls.append({
            "deployment": deployment,
            "messages": messages,
            "max_output_tokens": max_output_tokens,
            "text_format": text_format,
        })
        answer = self.answers[deployment]
        if isinstance(answer, Exception):
            raise answer
        return answer

    @property
    def deployments(self):
        return [call["deployment"] for call in self.calls]
