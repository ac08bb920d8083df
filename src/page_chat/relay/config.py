"""Relay runtime configuration, resolved from the process environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Upstream:
    """One provider the relay forwards to."""

    name: str
    label: str
    url: str
    key_env: str
    auth_header: str  # header carrying the credential
    auth_prefix: str = ""
    timeout: float = 30.0
    extra_headers: dict[str, str] = field(default_factory=dict)

    def headers(self, api_key: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            self.auth_header: f"{self.auth_prefix}{api_key}",
            **self.extra_headers,
        }


def _gemini_url() -> str:
    model = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
    return f"https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


def default_upstreams() -> dict[str, Upstream]:
    return {
        "openai": Upstream(
            name="openai",
            label="OpenAI",
            url="https://api.openai.com/v1/chat/completions",
            key_env="OPENAI_API_KEY",
            auth_header="Authorization",
            auth_prefix="Bearer ",
        ),
        "anthropic": Upstream(
            name="anthropic",
            label="Anthropic",
            url="https://api.anthropic.com/v1/messages",
            key_env="ANTHROPIC_API_KEY",
            auth_header="x-api-key",
            extra_headers={"anthropic-version": "2023-06-01"},
        ),
        "gemini": Upstream(
            name="gemini",
            label="Gemini",
            url=_gemini_url(),
            key_env="GEMINI_API_KEY",
            auth_header="x-goog-api-key",
        ),
        "grok": Upstream(
            name="grok",
            label="xAI",
            url="https://api.x.ai/v1/chat/completions",
            key_env="GROK_API_KEY",
            auth_header="Authorization",
            auth_prefix="Bearer ",
        ),
    }


@dataclass
class RelaySettings:
    """Credentials and limits for one relay process."""

    api_keys: dict[str, str] = field(default_factory=dict)
    upstreams: dict[str, Upstream] = field(default_factory=default_upstreams)
    host: str = "0.0.0.0"
    port: int = 3001
    fetch_timeout: float = 15.0
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> RelaySettings:
        upstreams = default_upstreams()
        api_keys = {
            name: os.environ[upstream.key_env]
            for name, upstream in upstreams.items()
            if os.environ.get(upstream.key_env)
        }
        origins = os.environ.get("PAGECHAT_ALLOWED_ORIGINS", "*")
        return cls(
            api_keys=api_keys,
            upstreams=upstreams,
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "3001")),
            fetch_timeout=float(os.environ.get("PAGECHAT_FETCH_TIMEOUT", "15")),
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.environ.get("PAGECHAT_LOG_LEVEL", "INFO").upper(),
        )
