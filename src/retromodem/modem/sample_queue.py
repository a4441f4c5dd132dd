"""
Producer/consumer sample queue.

The producer appends whole blocks; the realtime consumer drains from the
head into the buffer the audio runtime hands it. The queue does no locking
of its own: the playback session guards it together with the config.
"""

from collections import deque
from typing import Deque

import numpy as np


class SampleQueue:
    """
    FIFO of fully generated sample blocks.

    take() copies without allocating: blocks are consumed in place through
    a head offset and dropped once read to the end.
    """

    def __init__(self):
        self._blocks: Deque[np.ndarray] = deque()
        self._head = 0  # read offset into self._blocks[0]
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    def append(self, block: np.ndarray):
        """Queue a finished block. Empty blocks are ignored."""
        block = np.asarray(block, dtype=np.float32).reshape(-1)
        if block.size == 0:
            return
        self._blocks.append(block)
        self._size += block.size

    def take(self, frame_count: int, out: np.ndarray) -> int:
        """
        Move up to frame_count samples into out.

        out may be 1-D or shaped (frames, channels); mono samples are
        copied to every channel. Frames past what is queued are zeroed.

        Returns:
            Number of frames copied from the queue
        """
        frame_count = min(frame_count, len(out))
        copied = 0

        while copied < frame_count and self._blocks:
            block = self._blocks[0]
            n = min(frame_count - copied, block.size - self._head)
            chunk = block[self._head:self._head + n]
            if out.ndim == 2:
                out[copied:copied + n, :] = chunk[:, np.newaxis]
            else:
                out[copied:copied + n] = chunk
            copied += n
            self._head += n
            if self._head >= block.size:
                self._blocks.popleft()
                self._head = 0

        # underrun
        if copied < frame_count:
            out[copied:frame_count] = 0

        self._size -= copied
        return copied

    def clear(self):
        self._blocks.clear()
        self._head = 0
        self._size = 0
