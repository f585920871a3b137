from __future__ import annotations

"""Mailbox side of the pipeline.

Submodules:
 - imap_client: IMAP-over-TLS access (search, fetch, mark seen)
 - parse: message normalisation and link extraction
 - backoff: escalating pause after repeated connection failures
"""

__all__ = [
    "backoff",
    "imap_client",
    "parse",
]
