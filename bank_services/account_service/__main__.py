"""Usage: python -m bank_services.account_service [listen_addr]"""
import sys

from .presentation.server import run


if __name__ == "__main__":
    run(sys.argv[1] if len(sys.argv) > 1 else None)
