"""Allow running as ``python -m agent_connectors``."""

from .main import main

main()
