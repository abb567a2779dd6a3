import sys

from quackwalk_app.app import main

if __name__ == "__main__":
    sys.exit(main())
