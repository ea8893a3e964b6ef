"""appdoc command-line interface."""
