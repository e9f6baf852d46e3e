"""authscore: SPF, DKIM and DMARC record resolution and scoring."""

__version__ = "0.1.0"
