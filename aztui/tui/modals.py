"""Modal dialogs for the aztui TUI."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

from aztui.core.config import AztuiSettings


# ─── Credentials modal ──────────────────────────────────────────────────────


class CredentialsModal(ModalScreen[dict | None]):
    """Ask for the organization URL and personal access token."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, settings: AztuiSettings, **kw):
        super().__init__(**kw)
        self._settings = settings

    def compose(self) -> ComposeResult:
        with Vertical(id="credentials-dialog"):
            yield Static("[bold #007595]Azure DevOps credentials[/]", id="credentials-title")
            yield Label("Organization URL")
            yield Input(
                value=self._settings.azure_org_url,
                placeholder="https://dev.azure.com/yourorg",
                id="org-url-input",
            )
            yield Label("Personal access token")
            yield Input(
                value=self._settings.azure_pat,
                placeholder="Your Azure DevOps personal access token",
                password=True,
                id="pat-input",
            )
            yield Static("", id="credentials-error")
            with Horizontal(id="credentials-buttons"):
                yield Button("Save", variant="primary", id="credentials-save")
                yield Button("Cancel", variant="default", id="credentials-cancel")

    def on_mount(self) -> None:
        self.query_one("#org-url-input", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "credentials-save":
            self._submit()
        else:
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._submit()

    def _submit(self) -> None:
        org_url = self.query_one("#org-url-input", Input).value.strip()
        pat = self.query_one("#pat-input", Input).value.strip()
        if not org_url or not pat:
            self.query_one("#credentials-error", Static).update(
                "[#b84040]Both fields are required.[/]"
            )
            return
        self.dismiss({"azure_org_url": org_url, "azure_pat": pat})

    def action_cancel(self) -> None:
        self.dismiss(None)
