"""Service building blocks: response envelopes, WSGI request logging, queue client and messages, log shipping."""

__version__ = "0.1.0"