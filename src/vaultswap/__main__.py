"""Allow running with python -m vaultswap."""

from vaultswap.main import main

if __name__ == "__main__":
    main()
