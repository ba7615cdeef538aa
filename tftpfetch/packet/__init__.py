from . import types
from .factory import PacketFactory
