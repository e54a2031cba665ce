"""Authentication-and-forwarding proxy for the Trendyol marketplace API."""

from .client import TrendyolClient
from .config import ProxySettings
from .dispatch import dispatch

__all__ = ["TrendyolClient", "ProxySettings", "dispatch"]
