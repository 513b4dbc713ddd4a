import pytest

from screenshot_parity.features.perceptual import (
    compute_hashes,
    fingerprint_pair,
    hamming_distance_hex,
)


class TestHamming:
    def test_identical(self):
        assert hamming_distance_hex("ff00", "ff00") == 0

    def test_counts_bits(self):
        assert hamming_distance_hex("0x0f", "00") == 4

    def test_shorter_hash_is_padded(self):
        assert hamming_distance_hex("1", "0001") == 0

    def test_rejects_non_hex(self):
        with pytest.raises(ValueError):
            hamming_distance_hex("zz", "00")


class TestFingerprints:
    def test_hash_kinds(self, solid):
        hashes = compute_hashes(solid((32, 32), "red"))
        assert set(hashes) == {"ahash", "phash", "dhash"}
        assert all(len(value) == 16 for value in hashes.values())

    def test_rejects_non_images(self):
        with pytest.raises(TypeError):
            compute_hashes(b"png")

    def test_identical_pair_has_zero_distances(self, split_image):
        image = split_image((64, 64), (20, 20, 20), (230, 230, 230))
        fingerprint = fingerprint_pair(image, image.copy())
        assert fingerprint["figma"] == fingerprint["developed"]
        assert fingerprint["distances"] == {"ahash": 0, "phash": 0, "dhash": 0}
