"""Entry point for the nyxflare CLI."""

import logging
import sys


def _setup_logging(settings) -> None:
    """Log to a file only when a level is configured; the TUI owns the terminal."""
    if not settings.log_level:
        logging.getLogger().addHandler(logging.NullHandler())
        return
    level = getattr(logging, settings.log_level.upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    settings.log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(settings.log_path)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"
    ))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)


def main():
    """Main entry point."""
    from nyxflare.config import AccountStore, ConfigError, Settings
    from nyxflare.providers import create_provider

    try:
        settings = Settings.load()
        _setup_logging(settings)
        store = AccountStore(settings.accounts_path)
        store.load()
    except ConfigError as e:
        from rich.console import Console
        from rich.markup import escape
        console = Console()
        console.print(f"\n[bold red]Configuration Error:[/bold red] {escape(str(e))}")
        console.print(
            "\n[yellow]Fix or remove the accounts file and start again:[/yellow]"
            "\n  [bold]~/.config/nyxflare/accounts.yaml[/bold]"
            "\n\nTo try nyxflare without Cloudflare credentials:"
            "\n  [bold]NYXFLARE_OFFLINE=1 nyxflare[/bold]"
        )
        sys.exit(1)

    logging.getLogger(__name__).info(
        "Starting nyxflare with %d account(s)%s",
        len(store.accounts), " (offline)" if settings.offline else "",
    )
    provider = create_provider(
        store.accounts, offline=settings.offline, latency=settings.offline_latency,
    )

    # Launch the TUI app
    from nyxflare.app import NyxflareApp
    app = NyxflareApp(settings=settings, store=store, provider=provider)
    try:
        app.run()
    finally:
        app.orchestrator.shutdown()


if __name__ == "__main__":
    main()
