import os
import re

from serial.tools import list_ports


def strtobool(val) -> bool:
    ''' "y", "yes", "t", "true", "on" and "1" are true; everything else is false '''
    if isinstance(val, bool):
        return val

    return str(val).strip().lower() in ("y", "yes", "t", "true", "on", "1")


def strtoint(val : str) -> int:
    ''' str to int, hex allowed with a "0x" or "x" prefix '''
    if isinstance(val, int):
        return val

    val = val.lower().strip()
    if not val:
        return 0

    if val.startswith("0x"):
        return int(val[2:], 16)

    if val[0] == "x":
        return int(val[1:], 16)

    return int(val)


def describe_serial_port(port : str) -> str:
    ''' "[vid:pid:serial:location]" of a port, for logging; empty if the port is not listed '''
    if os.path.islink(port):
        port = os.path.realpath(port)

    for p in list_ports.comports():
        if str(p.device).upper() == port.upper():
            fields = (hex(p.vid) if p.vid is not None else "",
                      hex(p.pid) if p.pid is not None else "",
                      p.serial_number or "",
                      p.location or "")
            return "[" + ":".join(fields) + "]"

    return ""


_PORT_PATTERN = re.compile(r"\[(?P<vendor>[\da-zA-Z]+|):?(?P<product>[\da-zA-Z]+|):?(?P<serial>[\da-zA-Z]+|):?(?P<location>[\d\-.:]+|)\]")


def resolve_serial_port(port : str) -> str | None:
    '''
    device path for a configured port.
    plain paths and pyserial urls are returned as is; "[vid:pid:serial:location]" is looked up
    with any field left empty matching everything. None if nothing matches
    '''
    if os.path.islink(port):
        port = os.path.realpath(port)

    if not port.startswith("["):
        return port

    match = _PORT_PATTERN.match(port.replace("None", ""))
    if not match:
        raise ValueError(f"bad port pattern: {port}")

    vendor_id = int(match.group("vendor"), 16) if match.group("vendor") else None
    product_id = int(match.group("product"), 16) if match.group("product") else None
    serial_number = match.group("serial") or None
    location = match.group("location") or None

    for p in list_ports.comports():
        if ((vendor_id is None or p.vid == vendor_id) and
            (product_id is None or p.pid == product_id) and
            (serial_number is None or p.serial_number == serial_number) and
            (location is None or p.location == location)):
            return p.device

    return None
