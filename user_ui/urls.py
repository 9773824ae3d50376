from django.urls import path

from user_ui import views


urlpatterns = [
    path("", views.index, name="index"),
    path("graph.json", views.graph_json, name="graph_json"),
]
