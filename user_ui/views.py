from __future__ import annotations

from django.shortcuts import render
from django.http import HttpRequest, HttpResponse, JsonResponse

from explorer.report import snapshot_to_dict
from user_ui.forms import ACTIONS, ExplorerForm
from user_ui.services import (
    ServiceError,
    apply_queries,
    current_queries,
    current_snapshot,
    navigate_history,
    snapshot_payload,
)


def _render(
    request: HttpRequest,
    form: ExplorerForm,
    snapshot=None,
    *,
    action: str | None = None,
    service_error: str | None = None,
) -> HttpResponse:
    context = {
        "form": form,
        "graph": snapshot_to_dict(snapshot) if snapshot is not None else None,
        "action": action,
        "service_error": service_error,
    }
    return render(request, "user_ui/index.html", context)


def index(request: HttpRequest) -> HttpResponse:
    if request.method == "POST":
        action = (request.POST.get("action") or "apply").strip()
        form = ExplorerForm(request.POST)

        if action not in ACTIONS:
            return _render(request, form, action=action, service_error=f"Unknown action: {action}")

        try:
            if action == "apply":
                # Both fields are plain text; an invalid query is reported by its own field
                form.is_valid()
                cleaned = form.cleaned_data
                snapshot = apply_queries(cleaned["view_query"], cleaned["selection_query"])
            else:
                snapshot = navigate_history(action)
        except ServiceError as e:
            return _render(request, form, action=action, service_error=str(e))

        # Show the texts the view-model holds; they differ from POST after a recall
        form = ExplorerForm(initial=current_queries())
        return _render(request, form, snapshot, action=action)

    try:
        snapshot = current_snapshot()
        form = ExplorerForm(initial=current_queries())
    except ServiceError as e:
        return _render(request, ExplorerForm(), service_error=str(e))

    return _render(request, form, snapshot)


def graph_json(request: HttpRequest) -> HttpResponse:
    try:
        snapshot = current_snapshot()
    except ServiceError as e:
        return JsonResponse({"error": str(e)}, status=503)

    return JsonResponse(snapshot_payload(snapshot))
