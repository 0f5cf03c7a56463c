"""
XenoCanto Proxy: Cache Key Derivation
========================================

Maps a species name to the synthetic URL the edge cache is indexed by.

The key is `<authority>/<species>` with the species used exactly as the
inbound URL parser decoded it: no percent-encoding, case folding or trimming.
`Parus major` and `parus major` are different keys, and so are the empty
string and a single space. The key is never fetched; it only has to be
stable per species and distinct from the real upstream URL.
"""

from typing import Optional

from app.config import settings


def derive_cache_key(species: str, authority: Optional[str] = None) -> str:
    """Build the cache identity for one species lookup."""
    base = (authority or settings.cache_key_authority).rstrip("/")
    return f"{base}/{species}"
