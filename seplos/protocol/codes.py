from enum import Enum


class commands(Enum):
    ''' CID2 values sent to the BMS '''
    TELEMETRY_GET           = 0x42
    TELECOMMAND_GET         = 0x44
    TELECONTROL_CMD         = 0x45
    TELEREGULATION_GET      = 0x47
    TELEREGULATION_SET      = 0x49
    HISTORY_GET             = 0x4B
    TIME_GET                = 0x4D
    TIME_SET                = 0x4E
    PROTOCOL_VER_GET        = 0x4F
    VENDOR_GET              = 0x51
    PRODUCTION_CAL          = 0xA0
    PRODUCTION_SET          = 0xA1
    REGULAR_RECORDING       = 0xA2


class return_codes(Enum):
    ''' CID2 values returned by the BMS; reported by the device, not transport failures '''
    NORMAL                  = 0x00
    VERSION_ERROR           = 0x01
    CHECKSUM_ERROR          = 0x02
    LCHECKSUM_ERROR         = 0x03
    CID2_ERROR              = 0x04
    COMMAND_FORMAT_ERROR    = 0x05
    INVALID_DATA            = 0x06
    NO_HISTORY              = 0x07
    CID1_ERROR              = 0xE1
    EXECUTION_FAILURE       = 0xE2
    DEVICE_FAULT            = 0xE3
    PERMISSION_ERROR        = 0xE4
    UNKNOWN_ERROR           = -1

    @classmethod
    def from_code(cls, value : int) -> "return_codes":
        try:
            return cls(value)
        except ValueError:
            return return_codes.UNKNOWN_ERROR
