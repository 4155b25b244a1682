"""
Main entry point for running CloudDecode as a module.

This allows the package to be executed directly with:
python -m cloudecode
"""

from cloudecode.main import app


def main() -> None:
    """Run the CloudDecode CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
