"""Entry point for running moodvoice as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the moodvoice CLI application."""
    app()


if __name__ == "__main__":
    main()
