"""Daily Wage Connector: job marketplace for posters and day labourers."""

__version__ = "0.1.0"
