"""taxgrok - Federal income tax calculation from extracted tax documents."""

__version__ = "0.3.0"
