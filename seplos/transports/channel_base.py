import logging


class channel_base:
    '''
    duplex byte stream to one bus. the protocol is half duplex;
    callers serialize transactions on a channel, the channel itself does not
    '''

    name : str = ""

    _log : logging.Logger = None

    def __init__(self, name : str = "", log_level : int = logging.INFO) -> None:
        self.name = name or self.__class__.__name__
        self._log = logging.getLogger(f"{__name__}[{self.name}]")
        self._log.setLevel(log_level)

    @property
    def is_open(self) -> bool:
        return False

    def open(self) -> "channel_base":
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        ''' discard unread input '''
        raise NotImplementedError

    def write(self, data : bytes) -> int:
        ''' returns bytes written; raises IoError '''
        raise NotImplementedError

    def read_exact_within(self, size : int, timeout : float) -> bytes:
        ''' exactly size bytes, or ResponseTimeout once timeout seconds have passed; raises IoError '''
        raise NotImplementedError
