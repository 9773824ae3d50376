from __future__ import annotations

from django import forms


ACTIONS = (
    "apply",
    "view_back",
    "view_forward",
    "select_back",
    "select_forward",
)


class ExplorerForm(forms.Form):
    """
    The two query inputs of the explorer.

    This form:
    - Carries raw query text; the repository engine is the only judge of validity
    - Never touches the repository itself
    """

    selection_query = forms.CharField(
        label="Select",
        required=False,
        strip=True,
        widget=forms.TextInput(attrs={"placeholder": "@", "spellcheck": "false"}),
    )

    view_query = forms.CharField(
        label="View",
        required=False,
        strip=True,
        widget=forms.TextInput(attrs={"placeholder": "::@", "spellcheck": "false", "size": 60}),
    )

