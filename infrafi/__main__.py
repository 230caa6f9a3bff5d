"""Allow ``python -m infrafi``."""
from .cli import main

if __name__ == "__main__":
    main()
