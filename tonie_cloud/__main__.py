"""Package entry point for ``python -m tonie_cloud``."""

from tonie_cloud.cli import main

if __name__ == "__main__":
    main()
