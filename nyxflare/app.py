"""Main nyxflare Textual Application."""

from typing import Callable

from textual.app import App

from nyxflare.config import AccountStore, Settings
from nyxflare.controller import AppController
from nyxflare.orchestrator import RequestOrchestrator
from nyxflare.providers.base import DataProvider
from nyxflare.screens.dns_screen import DNSScreen


class NyxflareApp(App):
    """nyxflare - Cloudflare DNS across accounts."""

    TITLE = "nyxflare"
    SUB_TITLE = "Cloudflare DNS"

    def __init__(self, settings: Settings, store: AccountStore, provider: DataProvider):
        super().__init__()
        self.settings = settings
        self.store = store
        self.provider = provider
        self.orchestrator = RequestOrchestrator(runner=self._run_job, notify=self._wake)
        self.controller = AppController(
            provider, self.orchestrator, on_account_added=store.append,
        )
        if settings.offline:
            self.sub_title = "Cloudflare DNS (offline)"

    def on_mount(self):
        self.push_screen(DNSScreen())
        self.controller.start()

    def _run_job(self, job: Callable[[], None]):
        """Run a provider call in a background thread."""
        self.run_worker(job, thread=True, group="provider", exit_on_error=False)

    def _wake(self):
        """Called from the worker thread once a result is queued."""
        self.call_from_thread(self._on_results)

    def _on_results(self):
        if self.controller.pump():
            self._repaint()

    def _repaint(self):
        screen = self.screen
        if isinstance(screen, DNSScreen) and screen.is_mounted:
            screen.refresh_view()
