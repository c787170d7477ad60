import sys

from chat_core.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
