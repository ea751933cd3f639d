"""videohook — signed webhook receiver for Stream and Auth0 events."""

__version__ = "1.0.0"


def main() -> None:
    """CLI entrypoint for the videohook server."""
    from videohook.server import run_server

    run_server()
