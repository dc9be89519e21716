from __future__ import annotations

import pytest

from backend.web.config import ensure_secure_config_on_startup


def test_dev_is_permissive(monkeypatch):
    monkeypatch.setenv("CONTENT_API_BASE_URL", "http://localhost:9999")
    ensure_secure_config_on_startup()


def test_prod_requires_https_api(monkeypatch):
    monkeypatch.setenv("PHOTODROP_ENV", "prod")
    monkeypatch.setenv("CONTENT_REPO", "cookiesquad/site")
    monkeypatch.setenv("CONTENT_API_BASE_URL", "http://api.example.test")
    with pytest.raises(SystemExit):
        ensure_secure_config_on_startup()


def test_prod_requires_repo(monkeypatch):
    monkeypatch.setenv("PHOTODROP_ENV", "production")
    with pytest.raises(SystemExit):
        ensure_secure_config_on_startup()


def test_prod_ok_with_defaults_and_repo(monkeypatch):
    monkeypatch.setenv("PHOTODROP_ENV", "staging")
    monkeypatch.setenv("CONTENT_REPO", "cookiesquad/site")
    ensure_secure_config_on_startup()
