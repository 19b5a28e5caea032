"""Entrypoint for `python -m dnd_sheet`."""

from .cli import main


if __name__ == "__main__":
    main()
