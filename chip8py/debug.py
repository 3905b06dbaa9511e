"""
UDP debug event stream

Events are JSON lines: {"timestamp": ..., "type": ..., "data": {...}}.
Sending happens on a worker thread so the interpreter never blocks on
the socket.
"""

from __future__ import annotations

import json
import queue
import socket
import sys
import threading
from datetime import datetime
from typing import Dict, Optional


DEFAULT_DEBUG_PORT = 6464
DEFAULT_DEBUG_HOST = "127.0.0.1"


class UdpDebugLogger:
    """UDP debug logger for tracing emulator execution (async)"""

    def __init__(self, port: int = DEFAULT_DEBUG_PORT, host: str = DEFAULT_DEBUG_HOST, max_queue: int = 100000):
        self.port = port
        self.host = host
        self.sock: Optional[socket.socket] = None
        self.enabled = False
        self.queue = queue.Queue(maxsize=max_queue)
        self.worker_thread: Optional[threading.Thread] = None
        self.running = False
        self.dropped_count = 0
        self.send_errors = 0

    def enable(self) -> None:
        """Enable UDP debug logging"""
        try:
            self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as e:
            print(f"Warning: Failed to create UDP socket for debug: {e}", file=sys.stderr)
            self.enabled = False
            return
        self.enabled = True
        self.running = True
        self.worker_thread = threading.Thread(target=self._worker, daemon=True)
        self.worker_thread.start()

    def _worker(self) -> None:
        """Worker thread that sends queued messages"""
        while self.running:
            try:
                message = self.queue.get(timeout=0.1)
            except queue.Empty:
                continue
            if message is None:  # Shutdown signal
                break
            try:
                self.sock.sendto(message, (self.host, self.port))
            except OSError:
                # Nobody listening is normal for a debug stream
                self.send_errors += 1
            finally:
                self.queue.task_done()

    @staticmethod
    def encode(event_type: str, data: Dict) -> bytes:
        message = {
            'timestamp': datetime.now().isoformat(),
            'type': event_type,
            'data': data,
        }
        return json.dumps(message).encode('utf-8') + b"\n"

    def send(self, event_type: str, data: Dict) -> None:
        """Queue debug event for async sending (non-blocking)"""
        if not self.enabled:
            return

        message_bytes = self.encode(event_type, data)
        try:
            self.queue.put_nowait(message_bytes)
        except queue.Full:
            # Drop the oldest event to make room
            try:
                self.queue.get_nowait()
                self.queue.task_done()
            except queue.Empty:
                pass
            try:
                self.queue.put_nowait(message_bytes)
            except queue.Full:
                # Another sender refilled the slot first; this event is lost
                pass
            self.dropped_count += 1
            if self.dropped_count % 1000 == 0:
                print(f"UDP debug: dropped {self.dropped_count} messages (queue full)", file=sys.stderr)

    def close(self) -> None:
        """Close UDP socket and stop worker thread"""
        self.running = False
        try:
            self.queue.put_nowait(None)  # Signal shutdown
        except queue.Full:
            pass
        if self.worker_thread and self.worker_thread.is_alive():
            self.worker_thread.join(timeout=1.0)
        if self.sock:
            self.sock.close()
            self.sock = None
        self.enabled = False
