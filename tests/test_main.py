import json

import pytest

import main
from explorer.repo import JjRepositoryError
from tests.fakes import sample_engine


@pytest.fixture
def fake_repo(monkeypatch):
    engine = sample_engine()
    engine.ensure_jj_repository = lambda: None
    created = {}

    def factory(path, **kwargs):
        created["path"] = path
        created.update(kwargs)
        return engine

    monkeypatch.setattr(main, "JjRepository", factory)
    return created


def test_text_output(fake_repo, capsys, tmp_path):
    code = main.main(["-R", str(tmp_path), "--view", "::", "--select", "@"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Nodes: 6" in out
    assert "Matched: 1" in out
    assert fake_repo["path"] == tmp_path.resolve()
    assert fake_repo["jj_command"] == "jj"


def test_json_output(fake_repo, capsys, tmp_path):
    code = main.main(["-R", str(tmp_path), "--view", "@ | @-", "--select", "@", "--format", "json"])
    data = json.loads(capsys.readouterr().out)
    assert code == 0
    assert [n["id"] for n in data["nodes"]] == ["wc", "merge"]


def test_dot_output(fake_repo, capsys, tmp_path):
    main.main(["-R", str(tmp_path), "--view", "::", "--select", "@", "--format", "dot"])
    assert capsys.readouterr().out.startswith("digraph {")


def test_bad_view_query_exit_code(fake_repo, capsys, tmp_path):
    code = main.main(["-R", str(tmp_path), "--view", "bad((", "--select", "@"])
    assert code == 1
    assert "View error" in capsys.readouterr().out


def test_max_nodes_override(fake_repo, capsys, tmp_path):
    main.main(["-R", str(tmp_path), "--view", "::", "--select", "@", "--max-nodes", "2"])
    out = capsys.readouterr().out
    assert "Nodes: 2" in out
    assert "Warning: Node limit reached" in out


def test_config_file(fake_repo, capsys, tmp_path):
    cfg = tmp_path / "explorer.yaml"
    cfg.write_text("jj_command: myjj\nqueries:\n  view: '::'\n  selection: '::base'\n", encoding="utf-8")
    code = main.main(["--config", str(cfg)])
    assert code == 0
    assert fake_repo["jj_command"] == "myjj"
    assert "Matched: 2" in capsys.readouterr().out


def test_invalid_config_is_reported(fake_repo, capsys, tmp_path):
    cfg = tmp_path / "explorer.yaml"
    cfg.write_text("max_nodes: -1\n", encoding="utf-8")
    assert main.main(["--config", str(cfg)]) == 2
    assert capsys.readouterr().err.startswith("error: Invalid configuration")


def test_not_a_repository(monkeypatch, capsys, tmp_path):
    class NotARepo:
        def __init__(self, path, **kwargs):
            self.path = path

        def ensure_jj_repository(self):
            raise JjRepositoryError(f"Not a jj repository: {self.path}")

    monkeypatch.setattr(main, "JjRepository", NotARepo)
    assert main.main(["-R", str(tmp_path)]) == 2
    assert "Not a jj repository" in capsys.readouterr().err


def test_create_sample(monkeypatch, capsys, tmp_path):
    target = tmp_path / "demo"
    monkeypatch.setattr(main, "create_sample_repo", lambda path: path)
    assert main.main(["--create-sample", str(target)]) == 0
    assert f"revset-explorer -R {target}" in capsys.readouterr().out
