import os

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "user_ui.settings")
django.setup()

from django.test import Client  # noqa: E402

from explorer.state import ExplorerState  # noqa: E402
from user_ui import services  # noqa: E402
from user_ui.forms import ExplorerForm  # noqa: E402
from user_ui.services import ServiceError  # noqa: E402


@pytest.fixture
def explorer(engine):
    state = ExplorerState(engine, view_query="::", selection_query="@")
    state.tick()
    services.configure_explorer(state)
    yield state
    services.configure_explorer(None)


@pytest.fixture
def client():
    return Client()


class TestForm:
    def test_valid(self):
        form = ExplorerForm({"view_query": " :: ", "selection_query": ""})
        assert form.is_valid()
        assert form.cleaned_data == {"view_query": "::", "selection_query": ""}

    def test_empty_view_is_left_to_the_engine(self):
        form = ExplorerForm({"view_query": "  ", "selection_query": "@"})
        assert form.is_valid()
        assert form.cleaned_data["view_query"] == ""


class TestServices:
    def test_not_configured(self):
        services.configure_explorer(None)
        with pytest.raises(ServiceError):
            services.get_explorer()

    def test_apply_queries(self, explorer):
        snapshot = services.apply_queries("@ | @-", "@")
        assert [n.id for n in snapshot.nodes] == ["wc", "merge"]

    def test_navigate_history(self, explorer):
        services.apply_queries("::", "@")
        services.apply_queries("::", "::base")
        services.navigate_history("select_back")
        assert explorer.selection.text == "@"
        services.navigate_history("select_forward")
        assert explorer.selection.text == "::base"

    def test_unknown_action(self, explorer):
        with pytest.raises(ServiceError):
            services.navigate_history("sideways")

    def test_payload_has_layout_epoch(self, explorer):
        payload = services.snapshot_payload(services.current_snapshot())
        assert payload["layout_epoch"] == 1
        assert len(payload["nodes"]) == 6


class TestViews:
    def test_index_renders_graph(self, explorer, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.content.decode()
        assert "@ wwww" in body
        assert "6 commits" in body

    def test_apply_shows_field_errors(self, explorer, client):
        response = client.post("/", {"view_query": "::", "selection_query": "bad((", "action": "apply"})
        body = response.content.decode()
        assert response.status_code == 200
        assert "Failed to parse revset: bad((" in body
        assert explorer.selection.error

    def test_empty_view_does_not_block_selection(self, explorer, client):
        response = client.post("/", {"view_query": "", "selection_query": "left | right", "action": "apply"})
        assert response.status_code == 200
        assert explorer.selection.text == "left | right"
        assert explorer.selection.error is None
        assert explorer.view.error == "Failed to parse revset: "
        assert len(explorer.graph.nodes) == 6
        assert explorer.snapshot().category_of("left").matched

    def test_unknown_action_is_reported(self, explorer, client):
        response = client.post("/", {"view_query": "::", "selection_query": "@", "action": "sideways"})
        assert response.status_code == 200
        assert "Unknown action: sideways" in response.content.decode()
        assert explorer.selection.applied == "@"

    def test_history_button_recalls_value(self, explorer, client):
        client.post("/", {"view_query": "@ | @-", "selection_query": "@", "action": "apply"})
        response = client.post("/", {"view_query": "@ | @-", "selection_query": "@", "action": "view_back"})
        assert explorer.view.text == "::"
        assert 'value="::"' in response.content.decode()

    def test_graph_json(self, explorer, client):
        response = client.get("/graph.json")
        data = response.json()
        assert response.status_code == 200
        assert len(data["edges"]) == 6
        assert data["errors"]["view"] == ""

    def test_graph_json_without_explorer(self, client):
        services.configure_explorer(None)
        response = client.get("/graph.json")
        assert response.status_code == 503

    def test_index_without_explorer(self, client):
        services.configure_explorer(None)
        response = client.get("/")
        assert response.status_code == 200
        assert "Explorer is not configured" in response.content.decode()
