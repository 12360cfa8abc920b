"""Tests for the promptsgo CLI."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from prompts_go.cli.main import cli
from prompts_go.core.drafts import FileStorage, draft_key
from prompts_go.db.models import Draft


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_gateway(gateway):
    with patch("prompts_go.cli.main.get_gateway", return_value=gateway):
        yield gateway


@pytest.fixture
def storage_file(tmp_path):
    return str(tmp_path / "storage.json")


class TestRouteCommands:
    def test_encode(self, runner):
        result = runner.invoke(
            cli, ["route", "encode", "prompt", "-p", "prompt_id=p1", "-p", "from=repo", "-p", "repo_id=r1"]
        )
        assert result.exit_code == 0
        assert result.output.strip() == "/prompt/p1?from=repo&repoId=r1"

    def test_encode_invalid(self, runner):
        result = runner.invoke(cli, ["route", "encode", "nowhere"])
        assert result.exit_code != 0
        assert "Invalid page" in result.output

    def test_encode_bad_param(self, runner):
        result = runner.invoke(cli, ["route", "encode", "explore", "-p", "oops"])
        assert result.exit_code != 0

    def test_decode(self, runner):
        result = runner.invoke(cli, ["route", "decode", "/repo/r1?from=my-repo"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"type": "repo", "repo_id": "r1", "from": "my-repo"}

    def test_back(self, runner):
        result = runner.invoke(cli, ["route", "back", "/prompt/p1?from=repo&repoId=r1"])
        assert result.exit_code == 0
        assert result.output.strip() == "/repo/r1"


class TestPromptCommands:
    def test_prompt_list(self, runner, mock_gateway):
        mock_gateway.prompts.create({"user_id": "u1", "repo_id": "r1", "title": "Listed Prompt"})
        result = runner.invoke(cli, ["prompt", "list"])
        assert result.exit_code == 0
        assert "Listed Prompt" in result.output
        assert "TITLE" in result.output

    def test_prompt_list_json(self, runner, mock_gateway):
        mock_gateway.prompts.create({"user_id": "u1", "repo_id": "r1", "title": "Listed Prompt"})
        result = runner.invoke(cli, ["--format", "json", "prompt", "list", "--repo", "r1"])
        assert result.exit_code == 0
        assert json.loads(result.output)[0]["title"] == "Listed Prompt"

    def test_prompt_list_columns_aligned(self, runner, mock_gateway):
        mock_gateway.prompts.create({"user_id": "u1", "title": "A much longer prompt title"})
        mock_gateway.prompts.create({"user_id": "u1", "title": "Short"})
        lines = runner.invoke(cli, ["prompt", "list"]).output.splitlines()
        header, separator = lines[0], lines[1]
        assert header.split() == ["ID", "TITLE", "CATEGORY", "VISIBILITY", "HEARTS"]
        assert len(header.rstrip()) == len(separator)
        assert lines[2].index("public") == lines[3].index("public") == header.index("VISIBILITY")

    def test_prompt_list_empty(self, runner, mock_gateway):
        result = runner.invoke(cli, ["prompt", "list"])
        assert "No results." in result.output

    def test_prompt_show(self, runner, mock_gateway):
        created = mock_gateway.prompts.create({"user_id": "u1", "title": "Shown Prompt"}).data
        result = runner.invoke(cli, ["prompt", "show", created.id])
        assert result.exit_code == 0
        assert "Shown Prompt" in result.output

    def test_prompt_show_missing(self, runner, mock_gateway):
        result = runner.invoke(cli, ["prompt", "show", "nope"])
        assert result.exit_code == 1
        assert "Prompt not found" in result.output


class TestDraftCommands:
    def test_draft_show(self, runner, storage_file):
        draft = Draft(id=draft_key("u1"), user_id="u1", title="Half done")
        FileStorage(storage_file).set(draft.id, draft.model_dump_json())
        result = runner.invoke(cli, ["--storage", storage_file, "draft", "show", "u1"])
        assert result.exit_code == 0
        assert "Half done" in result.output

    def test_draft_show_missing(self, runner, storage_file):
        result = runner.invoke(cli, ["--storage", storage_file, "draft", "show", "u1"])
        assert "No draft" in result.output

    def test_draft_clear(self, runner, storage_file):
        FileStorage(storage_file).set(draft_key("u1"), "{}")
        result = runner.invoke(cli, ["--storage", storage_file, "draft", "clear", "u1"])
        assert result.exit_code == 0
        assert FileStorage(storage_file).get(draft_key("u1")) is None
