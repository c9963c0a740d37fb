"""Allow ``python -m switchboard``."""

from switchboard import main

main()
