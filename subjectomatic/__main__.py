"""
Module entry-point that makes the package runnable with

    python -m subjectomatic

The behaviour is identical to the *subjectomatic-cli* console script because
the Click **group** imported below performs all CLI dispatching.
"""

from subjectomatic.cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
