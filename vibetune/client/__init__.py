"""
Client module - synchronous API client and song status poller.
"""

from vibetune.client.api_client import APIError, VibeTuneClient
from vibetune.client.poller import StatusPoller, has_processing

__all__ = ["APIError", "StatusPoller", "VibeTuneClient", "has_processing"]
