"""Tests for digest helpers — SRI formatting, parsing, content addressing."""

from __future__ import annotations

import hashlib

import pytest

from arcshell.core.hasher import (
    canonical_json_bytes,
    content_address,
    parse_digest,
    sha256_file,
    sha256_hex,
    to_sri,
)

# Pinned digest of the xPack RISC-V toolchain in the bundled manifest.
XPACK_SRI = "sha256-9XRBW2PxKwm900dSI6tJKkZdI4EGRskME6TDtnbINQM="


class TestDigests:
    def test_sri_round_trip(self):
        digest = parse_digest(XPACK_SRI)
        assert len(digest) == 32
        assert to_sri(digest) == XPACK_SRI

    def test_hex_form_accepted(self):
        raw = hashlib.sha256(b"arceos").digest()
        assert parse_digest(f"sha256:{raw.hex()}") == raw

    def test_hex_and_sri_agree(self):
        raw = hashlib.sha256(b"same bytes").digest()
        assert parse_digest(to_sri(raw)) == parse_digest(f"sha256:{raw.hex()}")

    @pytest.mark.parametrize(
        "text",
        [
            "md5-1B2M2Y8AsgTpgAmY7PhCfg==",
            "sha256-not*base64",
            "sha256:zz",
            "sha256-AAAA",
            "",
        ],
    )
    def test_malformed_digest_rejected(self, text: str):
        with pytest.raises(ValueError):
            parse_digest(text)

    def test_sha256_file(self, tmp_path):
        path = tmp_path / "blob"
        path.write_bytes(b"x" * 3_000_000)
        assert sha256_file(path) == hashlib.sha256(b"x" * 3_000_000).digest()

    def test_sha256_hex(self):
        assert sha256_hex(b"") == hashlib.sha256(b"").hexdigest()


class TestContentAddress:
    def test_key_order_does_not_matter(self):
        assert content_address({"a": 1, "b": [1, 2]}) == content_address({"b": [1, 2], "a": 1})

    def test_prefix(self):
        assert content_address({}).startswith("sha256:")

    def test_canonical_json_is_compact(self):
        assert canonical_json_bytes({"b": 1, "a": 2}) == b'{"a":2,"b":1}'
