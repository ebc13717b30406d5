"""Entry point for ``python -m core_ledger``"""

from core_ledger.cli import main

if __name__ == "__main__":
    main()
