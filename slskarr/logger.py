"""
Minimal logging context for slskarr.
Single place to control all output: screen + file, with flush.
"""
import json
import os
import sys
from pathlib import Path
from datetime import datetime
from typing import Any, Optional

from slskarr.__version__ import __version__


class SlskarrLogger:
    """Minimal logger: print to screen + file, always flush"""

    def __init__(self, log_file: Optional[Path] = None, debug: bool = False, banner: bool = True):
        self.log_file = log_file
        self._file_handle = None
        self._start_time = datetime.now()
        self.debug_mode = debug

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_file, 'w', buffering=1, encoding='utf-8')  # Line buffered, UTF-8

        if banner:
            self.log(f"({self._start_time.strftime('%H:%M:%S')}  Started slskarr {__version__})")

    def log(self, msg: str, prefix: str = ""):
        """Log to screen and file"""
        output = f"{prefix}{msg}" if prefix else msg

        print(output, flush=True)
        sys.stdout.flush()

        if self._file_handle:
            self._file_handle.write(output + "\n")
            self._file_handle.flush()
            os.fsync(self._file_handle.fileno())

    def info(self, msg: str):
        """Info message"""
        self.log(msg)

    def warning(self, msg: str):
        """Warning message"""
        self.log(msg, "[WARNING] ")

    def error(self, msg: str):
        """Error message"""
        self.log(msg, "[ERROR] ")

    def debug(self, msg: str):
        """Debug message (only shown in debug mode)"""
        if self.debug_mode:
            self.log(msg, f"[{self._timestamp()}] [DEBUG] ")

    def api_retry(self, method: str, url: str, attempt: int, max_attempts: int, delay: int):
        """Log a transport retry"""
        self.log(
            f"slskd did not answer {method} {url}. Retrying in {delay}s... (attempt {attempt}/{max_attempts})",
            "[WARNING] ",
        )

    def api_failed(self, method: str, url: str, max_attempts: int):
        """Log a transport failure after all attempts"""
        self.log(f"slskd not responding to {method} {url} after {max_attempts} attempts. Aborting.", "[ERROR] ")

    def poll_wait(self, what: str, state: str, seconds: float):
        """Log a polling wait (debug mode only)"""
        self.debug(f"Polling {what}: state={state}, next check in {seconds:.3f}s")

    def api_request(self, method: str, url: str, params: Optional[dict] = None, body: Any = None):
        """Log API request (debug mode only)"""
        if self.debug_mode:
            timestamp = self._timestamp()
            self.log(f"API Request: {method} {url}", f"[{timestamp}] ")
            if params:
                self.log(f"  Params: {json.dumps(params, indent=2)}", f"[{timestamp}] ")
            if body is not None:
                self.log(f"  Body: {self._truncate(body)}", f"[{timestamp}] ")

    def api_response(self, status: int, data: Any, elapsed_ms: float):
        """Log API response (debug mode only)"""
        if self.debug_mode:
            timestamp = self._timestamp()
            self.log(f"API Response ({elapsed_ms:.0f}ms): Status {status}", f"[{timestamp}] ")
            if data:
                self.log(f"  Data: {self._truncate(data)}", f"[{timestamp}] ")

    @staticmethod
    def _timestamp() -> str:
        return datetime.now().strftime('%H:%M:%S.%f')[:-3]

    @staticmethod
    def _truncate(data: Any) -> str:
        data_str = json.dumps(data, indent=2, default=str)
        if len(data_str) > 5000:
            data_str = data_str[:5000] + "\n  ... (truncated)"
        return data_str

    def close(self):
        """Close file handle with goodbye message"""
        if self._file_handle:
            end_time = datetime.now()
            elapsed = end_time - self._start_time
            self.log(f"({end_time.strftime('%H:%M:%S')}  Ended session, elapsed {elapsed.total_seconds():.1f}s)")
            self._file_handle.close()
            self._file_handle = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


# Global instance (set by the CLI)
_logger: Optional[SlskarrLogger] = None

def set_logger(logger: SlskarrLogger):
    """Set global logger instance"""
    global _logger
    _logger = logger

def get_logger() -> SlskarrLogger:
    """Get global logger instance"""
    global _logger
    if _logger is None:
        # Fallback: stdout-only logger without the session banner
        _logger = SlskarrLogger(banner=False)
    return _logger

# Convenience functions
def log(msg: str):
    get_logger().log(msg)

def info(msg: str):
    get_logger().info(msg)

def warning(msg: str):
    get_logger().warning(msg)

def error(msg: str):
    get_logger().error(msg)

def debug(msg: str):
    get_logger().debug(msg)
