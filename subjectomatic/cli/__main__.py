"""Module wrapper so running ``python -m subjectomatic.cli`` matches the console script."""

from subjectomatic.cli import main  # Re-exported Click command-group


if __name__ == "__main__":  # pragma: no cover
    main()
