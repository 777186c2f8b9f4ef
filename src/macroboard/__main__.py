"""Entry point for 'python -m macroboard' command."""

from macroboard.cli import main

if __name__ == "__main__":
    main()
