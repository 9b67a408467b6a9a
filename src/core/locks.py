"""키 단위 잠금 레지스트리

동일 키 호출은 직렬화, 다른 키는 서로 경쟁하지 않는다.
사용 중인 키가 없어지면 잠금 객체도 제거된다.
"""

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class KeyedLock:
    """프로세스 내 키별 상호 배제

    사용 패턴:
        locks = KeyedLock()
        with locks.hold(("user_1", "quest-1")):
            ...  # read → validate → write
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key → [lock, 대기/보유 중인 스레드 수]
        self._entries: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._entries[key] = entry
            entry[1] += 1

        lock: threading.Lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]

    @property
    def active_keys(self) -> int:
        """현재 보유/대기 중인 키 수"""
        with self._guard:
            return len(self._entries)
