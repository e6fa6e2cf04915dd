"""Main function for streamy."""

from streamy.core import cli


def run_main() -> None:
    """Main entry point to streamy."""
    cli.app()


if __name__ == "__main__":
    cli.app()
