from enum import Enum

from scribo.core.errors import InputValidationError


class AudioRoute(str, Enum):
    DIRECT = "direct"    # one request to the speech-to-text provider
    CHUNKED = "chunked"  # split into fixed-length chunks first


class AudioTooLargeError(InputValidationError):
    def __init__(self, size_bytes: int, limit_bytes: int):
        size_mb = size_bytes / (1024 * 1024)
        limit_mb = limit_bytes / (1024 * 1024)
        super().__init__(
            f"Extracted audio is {size_mb:.0f}MB, which exceeds our processing limit "
            f"of {limit_mb:.0f}MB. This typically happens with very long recordings "
            f"(2+ hours). Try uploading a shorter file or splitting it into segments "
            f"before uploading."
        )
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


def decide_route(size_bytes: int, max_direct_bytes: int, max_total_bytes: int) -> AudioRoute:
    """
    Size-based routing of normalized audio.
    Exactly max_direct_bytes still goes direct; one byte more is chunked.
    """
    if size_bytes > max_total_bytes:
        raise AudioTooLargeError(size_bytes, max_total_bytes)
    if size_bytes > max_direct_bytes:
        return AudioRoute.CHUNKED
    return AudioRoute.DIRECT
