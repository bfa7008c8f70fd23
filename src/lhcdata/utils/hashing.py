"""
Hashing utilities for output provenance.

The output file records the configuration hash and the hash of every input
file, so two outputs can be compared without diffing their contents.
"""

import hashlib
import json
from typing import Any, Dict


def hash_config(config: Dict[str, Any], prefix: str = "sha256") -> str:
    """
    Produce deterministic hash of a configuration dictionary.

    Args:
        config: Configuration dictionary to hash (must be JSON-serializable)
        prefix: Hash prefix (default: "sha256")

    Returns:
        Hash string in format "prefix:hash_value"

    Example:
        >>> hash_config({"output_path": "lhcdata.h5"})
        'sha256:...'
    """
    # Sort keys for determinism
    serialized = json.dumps(config, sort_keys=True, separators=(",", ":"))
    hash_value = hashlib.sha256(serialized.encode()).hexdigest()[:16]
    return f"{prefix}:{hash_value}"


def hash_file(file_path: str) -> str:
    """
    Compute SHA256 hash of a file's contents.

    Args:
        file_path: Path to file

    Returns:
        Hash string in format "sha256:hash_value"
    """
    sha256_hash = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(4096), b""):
            sha256_hash.update(chunk)
    return f"sha256:{sha256_hash.hexdigest()[:16]}"
