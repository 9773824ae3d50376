from __future__ import annotations

import os

from explorer.config import ExplorerConfig
from explorer.engine import RepositoryEngine
from explorer.state import ExplorerState
from user_ui.services import configure_explorer


def run_server(cfg: ExplorerConfig, engine: RepositoryEngine, *, host: str, port: int) -> None:
    """
    Serve the explorer UI until interrupted.

    Runs without threading or autoreload: ticks must never overlap and the
    view-model lives in this process only.
    """
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "user_ui.settings")

    import django
    from django.core.management import call_command

    django.setup()

    state = ExplorerState.from_config(cfg, engine)
    state.tick()
    configure_explorer(state)

    call_command("runserver", f"{host}:{port}", use_reloader=False, use_threading=False)
