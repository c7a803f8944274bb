import queue
import time
from typing import Callable

from seplos.exceptions import ResponseTimeout
from seplos.transports.channel_base import channel_base


class fake_channel(channel_base):
    ''' in memory channel; responder(request) returns the bytes the "device" sends back '''

    def __init__(self, responder : Callable[[bytes], bytes] = None):
        super().__init__("fake")
        self.responder = responder
        self.buffer = bytearray()
        self.writes : list[bytes] = []
        self.reads : list[tuple[int, float]] = []
        self.flushes = 0
        self.opened = True

    @property
    def is_open(self) -> bool:
        return self.opened

    def open(self):
        self.opened = True
        return self

    def close(self):
        self.opened = False

    def flush(self):
        self.flushes += 1
        self.buffer.clear()

    def write(self, data : bytes) -> int:
        self.writes.append(bytes(data))
        if self.responder:
            self.buffer += self.responder(bytes(data))
        return len(data)

    def read_exact_within(self, size : int, timeout : float) -> bytes:
        self.reads.append((size, timeout))
        if len(self.buffer) < size:
            received = len(self.buffer)
            self.buffer.clear()
            raise ResponseTimeout(f"fake: only {received} of {size} bytes")

        data = bytes(self.buffer[:size])
        del self.buffer[:size]
        return data


class silent_channel(channel_base):
    ''' a device that never answers; reads wait out the real deadline '''

    def __init__(self):
        super().__init__("silent")
        self.incoming : queue.Queue = queue.Queue()
        self.flushes = 0

    @property
    def is_open(self) -> bool:
        return True

    def flush(self):
        self.flushes += 1
        while not self.incoming.empty():
            self.incoming.get_nowait()

    def write(self, data : bytes) -> int:
        return len(data)

    def read_exact_within(self, size : int, timeout : float) -> bytes:
        deadline = time.monotonic() + timeout
        data = bytearray()
        while len(data) < size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ResponseTimeout(f"silent: {len(data)} of {size} bytes")
            try:
                data += self.incoming.get(timeout=remaining)
            except queue.Empty:
                pass
        return bytes(data)
