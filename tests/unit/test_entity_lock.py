"""
Unit tests for the keyed entity lock registry.

Verifies:
- Same key is mutually exclusive
- Different keys never block each other
- Entries are discarded once no holder or waiter remains
- Timeouts raise TimeoutError and leave no entry behind
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from clinic_kernel.services.entity_lock import EntityLockRegistry


class TestEntityLockRegistry:

    def test_entry_discarded_after_release(self):
        registry = EntityLockRegistry()
        with registry.hold(("invoice", 1)):
            assert registry.active_count() == 1
        assert registry.active_count() == 0

    def test_entry_discarded_after_exception(self):
        registry = EntityLockRegistry()
        with pytest.raises(RuntimeError):
            with registry.hold(("invoice", 1)):
                raise RuntimeError("boom")
        assert registry.active_count() == 0

    def test_same_key_is_exclusive(self):
        registry = EntityLockRegistry()
        inside = 0
        max_inside = 0
        counter_lock = threading.Lock()

        def work():
            nonlocal inside, max_inside
            with registry.hold(("invoice", "A")):
                with counter_lock:
                    inside += 1
                    max_inside = max(max_inside, inside)
                time.sleep(0.01)
                with counter_lock:
                    inside -= 1

        with ThreadPoolExecutor(max_workers=8) as pool:
            for future in [pool.submit(work) for _ in range(16)]:
                future.result()

        assert max_inside == 1
        assert registry.active_count() == 0

    def test_different_keys_do_not_block(self):
        registry = EntityLockRegistry()
        acquired = threading.Event()

        def other_key():
            with registry.hold(("invoice", "B"), timeout=1):
                acquired.set()

        with registry.hold(("invoice", "A")):
            thread = threading.Thread(target=other_key)
            thread.start()
            thread.join(timeout=2)

        assert acquired.is_set()

    def test_timeout_raises_and_cleans_up(self, captured_logs):
        registry = EntityLockRegistry()
        errors = []

        def contender():
            try:
                with registry.hold(("claim", "X"), timeout=0.05):
                    pass
            except TimeoutError as e:
                errors.append(e)

        with registry.hold(("claim", "X")):
            thread = threading.Thread(target=contender)
            thread.start()
            thread.join(timeout=2)
            assert registry.active_count() == 1

        assert len(errors) == 1
        assert registry.active_count() == 0
        assert any(r["message"] == "entity_lock_timeout" for r in captured_logs())
