import logging

import serial

from defs.common import describe_serial_port, resolve_serial_port

from ..exceptions import IoError, ResponseTimeout
from .channel_base import channel_base


class serial_channel(channel_base):
    ''' rs485 / usb serial link via pyserial. port may be a device path, a pyserial url (ie. loop://) or [vid:pid:serial:location] '''

    port : str = "/dev/ttyUSB0"
    baudrate : int = 19200
    exclusive : bool = True

    client : serial.SerialBase = None

    def __init__(self, port : str, baudrate : int = 19200, exclusive : bool = True,
                 log_level : int = logging.INFO, **kwargs) -> None:
        super().__init__(port, log_level)
        self.port = port
        self.baudrate = baudrate
        self.exclusive = exclusive
        self.serial_kwargs = kwargs

    @property
    def is_open(self) -> bool:
        return self.client is not None and self.client.is_open

    def open(self) -> "serial_channel":
        port = resolve_serial_port(self.port)
        if not port:
            raise IoError(f"serial port {self.port} not found")

        kwargs = dict(bytesize=serial.EIGHTBITS, parity=serial.PARITY_NONE, stopbits=serial.STOPBITS_ONE)
        kwargs.update(self.serial_kwargs)
        if "://" not in port: #url handlers do not take exclusive
            kwargs["exclusive"] = self.exclusive

        try:
            self.client = serial.serial_for_url(port, self.baudrate, **kwargs)
        except (serial.SerialException, OSError) as err:
            raise IoError(f"could not open {port}: {err}") from err

        self._log.info(f"opened {port} {describe_serial_port(port)} at {self.baudrate} baud")
        self.client.reset_input_buffer()
        return self

    def close(self) -> None:
        if self.client is None:
            return

        try:
            self.client.close()
        except (serial.SerialException, OSError) as err:
            self._log.warning(f"error closing {self.port}: {err}")
        finally:
            self.client = None

    def _require_open(self) -> serial.SerialBase:
        if not self.is_open:
            raise IoError(f"serial port {self.port} is not open")
        return self.client

    def flush(self) -> None:
        client = self._require_open()
        try:
            client.reset_input_buffer()
        except (serial.SerialException, OSError) as err:
            raise IoError(f"flush failed: {err}") from err

    def write(self, data : bytes) -> int:
        client = self._require_open()
        try:
            written = client.write(data)
            client.flush() #wait until sent; the bms only answers a complete command
        except (serial.SerialException, OSError) as err:
            raise IoError(f"write failed: {err}") from err

        return len(data) if written is None else written

    def read_exact_within(self, size : int, timeout : float) -> bytes:
        client = self._require_open()
        if size <= 0:
            return b""

        try:
            client.timeout = timeout #total time for the read, not per byte
            data = client.read(size)
        except (serial.SerialException, OSError) as err:
            raise IoError(f"read failed: {err}") from err

        if len(data) < size:
            raise ResponseTimeout(f"got {len(data)} of {size} bytes within {timeout}s")

        return bytes(data)
