"""yCard contact-list validation, snapshot diff and persistence."""

__version__ = "0.1.0"
