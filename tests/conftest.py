import json
from pathlib import Path

import pytest

from claude_status.config import Config


def write_credentials(path: Path, token="tok-123", subscription="pro", extra=None) -> Path:
    oauth = {"accessToken": token}
    if subscription is not None:
        oauth["subscriptionType"] = subscription
    doc = {"claudeAiOauth": oauth}
    if extra:
        doc.update(extra)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


def assistant_record(input_tokens, cache_creation=0, cache_read=0, model="claude-sonnet-4-5"):
    message = {
        "usage": {
            "input_tokens": input_tokens,
            "cache_creation_input_tokens": cache_creation,
            "cache_read_input_tokens": cache_read,
            "output_tokens": 12,
        },
    }
    if model is not None:
        message["model"] = model
    return {"type": "assistant", "message": message}


def write_transcript(path: Path, records) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def creds_path(tmp_path):
    return write_credentials(tmp_path / ".claude" / ".credentials.json")


@pytest.fixture
def projects_dir(tmp_path):
    root = tmp_path / "projects"
    root.mkdir()
    return root


@pytest.fixture
def config(creds_path, projects_dir):
    return Config(credentials_path=str(creds_path), projects_dir=projects_dir)
