"""Teams agent entry points: ``manifest.json`` and ``handlers``."""
