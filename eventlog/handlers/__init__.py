"""Event destinations."""

from .base import Handler
from .capture import CaptureHandler
from .channel import ChannelHandler
from .filter import FilterHandler
from .gcl import GoogleCloudLoggingHandler
from .http import HttpHandler
from .syslog import Facility, SyslogHandler
from .writer import StandardStreamsHandler, WriterHandler

__all__ = [
    "Handler",
    "CaptureHandler",
    "ChannelHandler",
    "FilterHandler",
    "GoogleCloudLoggingHandler",
    "HttpHandler",
    "Facility",
    "SyslogHandler",
    "StandardStreamsHandler",
    "WriterHandler",
]
