"""Collector failure types"""
from typing import Optional


class CollectorError(Exception):
    """Base class for failures raised while updating a collector"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} (url={self.url})"
        return self.message


class TransportError(CollectorError):
    """The request could not be sent or no response arrived in time"""


class StatusError(CollectorError):
    """The upstream answered with a non-success HTTP status"""

    def __init__(self, status_code: int, url: Optional[str] = None):
        super().__init__(f"HTTP request failed with code {status_code}", url)
        self.status_code = status_code


class ParseError(CollectorError):
    """The response body could not be read or decoded"""
