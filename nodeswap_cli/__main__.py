"""console script entrypoint for the nodeswap CLI."""

from .cli import main as _cli_main


def main() -> int:
    """Console entrypoint used by the ``nodeswap`` script hook."""
    return _cli_main()


if __name__ == "__main__":
    raise SystemExit(main())
