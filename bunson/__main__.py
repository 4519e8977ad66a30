"""Allow running as: python -m bunson"""

from bunson.cli.main import main

if __name__ == "__main__":
    main()
