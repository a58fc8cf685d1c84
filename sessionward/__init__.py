"""sessionward - cookie-based JWT sessions with server-side revocation."""

__version__ = "0.1.0"
