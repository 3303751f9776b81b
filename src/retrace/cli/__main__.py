"""Allow running as `python -m retrace.cli`."""

from .main import main

if __name__ == "__main__":
    main()
