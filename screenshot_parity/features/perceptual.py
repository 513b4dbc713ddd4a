"""Perceptual-hash fingerprints of normalized screenshots."""

from __future__ import annotations

from typing import Any, Callable

import imagehash
from PIL import Image

_HASH_SIZE = 8
_HASHERS: dict[str, Callable[..., imagehash.ImageHash]] = {
    "ahash": imagehash.average_hash,
    "phash": imagehash.phash,
    "dhash": imagehash.dhash,
}


def compute_hashes(img: Image.Image, hash_size: int = _HASH_SIZE) -> dict[str, str]:
    """Return the ahash, phash and dhash of *img* as hex strings."""
    if not isinstance(img, Image.Image):
        raise TypeError("compute_hashes expects a PIL.Image.Image instance")

    work_img = img if img.mode in {"RGB", "L"} else img.convert("RGB")
    return {
        kind: str(hasher(work_img, hash_size=hash_size))
        for kind, hasher in _HASHERS.items()
    }


def hamming_distance_hex(h1: str, h2: str) -> int:
    """Count differing bits between two hex hashes, left-padding the shorter one."""
    hex_1, hex_2 = _normalise_hex(h1), _normalise_hex(h2)
    if not hex_1 and not hex_2:
        return 0
    try:
        value_1 = int(hex_1 or "0", 16)
        value_2 = int(hex_2 or "0", 16)
    except ValueError as exc:
        raise ValueError(f"Not a hexadecimal hash: {h1!r} / {h2!r}") from exc
    return (value_1 ^ value_2).bit_count()


def fingerprint_pair(figma: Image.Image, developed: Image.Image) -> dict[str, Any]:
    """Hash both screenshots and report the per-kind Hamming distances.

    Distances near zero mean the two renders are structurally alike even when
    the pixel diff is large, e.g. after a uniform color shift.
    """
    figma_hashes = compute_hashes(figma)
    developed_hashes = compute_hashes(developed)
    return {
        "figma": figma_hashes,
        "developed": developed_hashes,
        "distances": {
            kind: hamming_distance_hex(figma_hashes[kind], developed_hashes[kind])
            for kind in _HASHERS
        },
    }


def _normalise_hex(value: str) -> str:
    if not isinstance(value, str):
        raise TypeError("Hash values must be provided as strings")
    stripped = value.strip().lower()
    return stripped[2:] if stripped.startswith("0x") else stripped
