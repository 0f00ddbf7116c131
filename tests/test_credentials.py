"""Unit tests for credential loading and validation."""

import json

import pytest

from claude_status.credentials import (
    CredentialStore,
    expand_path,
    load_credentials,
    plan_tier_from,
    validate_credentials,
)
from claude_status.errors import InvalidCredentialsError, NoCredentialsError, ResultCode
from claude_status.shared_state import PlanTier

from conftest import write_credentials


class TestLoadCredentials:
    def test_valid_file(self, creds_path):
        creds = load_credentials(creds_path)
        assert creds.access_token == "tok-123"
        assert creds.plan_tier is PlanTier.PRO

    def test_max_plan(self, tmp_path):
        path = write_credentials(tmp_path / "c.json", subscription="claude_max_20x")
        assert load_credentials(path).plan_tier is PlanTier.MAX

    def test_max_checked_before_pro(self, tmp_path):
        path = write_credentials(tmp_path / "c.json", subscription="pro_to_max")
        assert load_credentials(path).plan_tier is PlanTier.MAX

    def test_tier_is_case_insensitive(self, tmp_path):
        path = write_credentials(tmp_path / "c.json", subscription="Claude PRO")
        assert load_credentials(path).plan_tier is PlanTier.PRO

    def test_unknown_or_missing_tier(self, tmp_path):
        path = write_credentials(tmp_path / "a.json", subscription="team")
        assert load_credentials(path).plan_tier is PlanTier.UNKNOWN
        path = write_credentials(tmp_path / "b.json", subscription=None)
        assert load_credentials(path).plan_tier is PlanTier.UNKNOWN

    def test_missing_file(self, tmp_path):
        with pytest.raises(NoCredentialsError) as exc_info:
            load_credentials(tmp_path / "nope.json")
        assert exc_info.value.code is ResultCode.NO_CREDENTIALS

    def test_truncated_json(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text('{"claudeAiOauth": {"accessToken": "ab', encoding="utf-8")
        with pytest.raises(InvalidCredentialsError) as exc_info:
            load_credentials(path)
        assert exc_info.value.code is ResultCode.INVALID_CREDENTIALS

    def test_missing_oauth_section(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text(json.dumps({"other": {}}), encoding="utf-8")
        with pytest.raises(InvalidCredentialsError):
            load_credentials(path)

    def test_document_not_an_object(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(InvalidCredentialsError):
            load_credentials(path)

    def test_empty_or_non_string_token(self, tmp_path):
        path = write_credentials(tmp_path / "a.json", token="")
        with pytest.raises(InvalidCredentialsError):
            load_credentials(path)
        path = write_credentials(tmp_path / "b.json", token=42)
        with pytest.raises(InvalidCredentialsError):
            load_credentials(path)

    def test_tilde_expands_to_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        write_credentials(tmp_path / ".claude" / ".credentials.json", subscription="max")
        assert expand_path("~/.claude/.credentials.json") == tmp_path / ".claude" / ".credentials.json"
        assert load_credentials(None).plan_tier is PlanTier.MAX

    def test_token_not_in_repr(self, creds_path):
        assert "tok-123" not in repr(load_credentials(creds_path))


class TestPlanTier:
    def test_non_string(self):
        assert plan_tier_from(None) is PlanTier.UNKNOWN
        assert plan_tier_from(3) is PlanTier.UNKNOWN

    def test_labels(self):
        assert PlanTier.MAX.label == "Max"
        assert PlanTier.PRO.label == "Pro"
        assert PlanTier.UNKNOWN.label is None


class TestValidateCredentials:
    def test_ok(self, creds_path):
        ok, message = validate_credentials(creds_path)
        assert ok
        assert "Pro" in message
        assert "tok-123" not in message

    def test_reasons_differ_per_failure(self, tmp_path):
        missing = tmp_path / "missing.json"
        bad_json = tmp_path / "bad.json"
        bad_json.write_text("{", encoding="utf-8")
        no_oauth = tmp_path / "no_oauth.json"
        no_oauth.write_text("{}", encoding="utf-8")
        no_token = write_credentials(tmp_path / "no_token.json", token="")

        reasons = []
        for path in (missing, bad_json, no_oauth, no_token):
            ok, message = validate_credentials(path)
            assert not ok
            reasons.append(message)
        assert len(set(reasons)) == 4
        assert "not found" in reasons[0]
        assert "JSON" in reasons[1]

    def test_does_not_touch_store(self, tmp_path, creds_path):
        store = CredentialStore()
        store.load(creds_path)
        validate_credentials(tmp_path / "missing.json")
        assert store.current is not None


class TestCredentialStore:
    def test_load_replaces(self, tmp_path, creds_path):
        store = CredentialStore()
        assert store.current is None
        store.load(creds_path)
        assert store.current.plan_tier is PlanTier.PRO

        other = write_credentials(tmp_path / "other.json", token="tok-456", subscription="max")
        store.load(other)
        assert store.current.access_token == "tok-456"
        assert store.current.plan_tier is PlanTier.MAX

    def test_failed_load_leaves_store_empty(self, tmp_path, creds_path):
        store = CredentialStore()
        store.load(creds_path)
        with pytest.raises(NoCredentialsError):
            store.load(tmp_path / "missing.json")
        assert store.current is None

    def test_clear(self, creds_path):
        store = CredentialStore()
        store.load(creds_path)
        store.clear()
        assert store.current is None
