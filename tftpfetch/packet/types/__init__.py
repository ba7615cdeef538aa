from .request import ReadRQ
from .data import Data
from .acknowledge import Ack,OptionAck
from .error import Error
