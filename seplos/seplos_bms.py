import logging
import threading
from typing import TYPE_CHECKING

from .protocol.frame_codec import DEVICE_TYPE_BATTERY, MAX_ADDRESS
from .transaction import DEFAULT_TIMEOUT, response, transaction_engine
from .transports.serial_channel import serial_channel

if TYPE_CHECKING:
    from configparser import SectionProxy

    from .transports.channel_base import channel_base


class seplos_bms:
    '''
    one bms on one serial bus, configured from a config section.
    all exchanges go through a lock; the bus carries one transaction at a time
    '''

    name : str = ""
    port : str = "/dev/ttyUSB0"
    baudrate : int = 19200
    address : int = 0
    timeout : float = DEFAULT_TIMEOUT
    device_type : int = DEVICE_TYPE_BATTERY

    protocol_version : float = 0
    ''' fetched on connect '''

    channel : "channel_base"
    engine : transaction_engine

    _log : logging.Logger = None

    def __init__(self, settings : "SectionProxy", channel : "channel_base" = None) -> None:
        self.name = settings.name

        #apply log level to logger
        self._log_level = getattr(logging, settings.get("log_level", fallback="INFO").upper(), logging.INFO)
        self._log = logging.getLogger(f"{__name__}[{self.name}]")
        self._log.setLevel(self._log_level)

        self.port = settings.get("port", fallback="")
        if not self.port and channel is None:
            raise ValueError("Port is not set")

        self.baudrate = settings.getint(["baudrate", "baud"], fallback=self.baudrate)
        self.address = settings.getint(["address", "adr"], fallback=self.address)
        if not 0 <= self.address <= MAX_ADDRESS:
            raise ValueError(f"address must be 0-{MAX_ADDRESS}, got {self.address}")

        self.timeout = settings.getfloat("timeout", fallback=self.timeout)
        self.device_type = settings.getint(["device_type", "cid1"], fallback=self.device_type)

        if channel is None:
            channel = serial_channel(self.port, self.baudrate,
                                     exclusive=settings.getboolean("exclusive", fallback=True),
                                     log_level=self._log_level)
        self.channel = channel

        self.engine = transaction_engine(timeout=self.timeout, device_type=self.device_type, log=self._log)
        self._lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self.channel.is_open

    def connect(self) -> float:
        ''' opens the channel and reads the protocol version '''
        if not self.channel.is_open:
            self.channel.open()

        self.protocol_version = self.get_protocol_version()
        self._log.info(f"{self.name}: seplos protocol version is {self.protocol_version}")
        return self.protocol_version

    def close(self) -> None:
        with self._lock:
            self.channel.close()

    def execute(self, function : int, payload : bytes = b"") -> response:
        with self._lock:
            return self.engine.execute(self.channel, self.address, function, payload)

    def get_protocol_version(self, pack : int = 0) -> float:
        with self._lock:
            return self.engine.get_protocol_version(self.channel, self.address, pack)
