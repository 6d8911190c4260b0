# spool_rfid/keys/__init__.py

from .derivation import candidate_keys, clear_key_cache, derive_keys, key_cache_info

__all__ = [
    "derive_keys",
    "candidate_keys",
    "clear_key_cache",
    "key_cache_info",
]
