"""Built-in CLI commands: ``rewrite`` and ``plan``."""
