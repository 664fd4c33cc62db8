"""Adversarial tests: concurrent fetches of one artifact converge on one entry."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from arcshell.core.artifact_store import ContentAddressedStore
from arcshell.core.fetcher import Fetcher


class TestConcurrentFetch:
    def test_same_artifact_from_many_threads(self, store: ContentAddressedStore, make_descriptor):
        descriptor = make_descriptor("gcc")
        barrier = threading.Barrier(8)

        def fetch_once():
            barrier.wait()
            return Fetcher(store).fetch(descriptor)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: fetch_once(), range(8)))

        assert len({r.local_path for r in results}) == 1
        assert all(r.verified for r in results)
        assert store.entries() == [store.entry_path(descriptor, descriptor.expected_digest)]
        assert [p for p in store.base_path.iterdir() if p.name.startswith(".staging-")] == []
        assert (results[0].local_path / "bin" / "gcc").is_file()

    def test_separate_store_instances_share_entries(self, tmp_dir, make_descriptor):
        descriptor = make_descriptor("gcc")
        first = Fetcher(ContentAddressedStore(tmp_dir / "shared")).fetch(descriptor)
        second = Fetcher(ContentAddressedStore(tmp_dir / "shared")).fetch(descriptor)
        assert second.cache_hit
        assert second.local_path == first.local_path
