from configparser import ConfigParser, NoOptionError, SectionProxy

from defs.common import strtobool, strtoint


class CustomConfigParser(ConfigParser):
    ''' get() accepts a list of alias option names, first non empty wins; values are stripped '''

    def get(self, section, option, *args, **kwargs):
        if isinstance(option, list):
            fallback = kwargs.pop("fallback", None)

            value = None
            for name in option:
                try:
                    value = super().get(section, name, *args, **kwargs)
                except NoOptionError:
                    value = None

                if value:
                    break

            if not value:
                value = fallback

            if value is None:
                raise NoOptionError(option[0], section)
        else:
            value = super().get(section, option, *args, **kwargs)

        if isinstance(value, (int, float, bool)):
            return value

        return value.strip() if value is not None else value

    def getint(self, section, option, *args, **kwargs): #bypass fallback bug
        value = self.get(section, option, *args, **kwargs)
        return strtoint(value) if value is not None else None

    def getfloat(self, section, option, *args, **kwargs): #bypass fallback bug
        value = self.get(section, option, *args, **kwargs)
        return float(value) if value is not None else None

    def getboolean(self, section, option, *args, **kwargs):
        value = self.get(section, option, *args, **kwargs)
        return strtobool(value) if value is not None else None


def load_config(*files : str) -> CustomConfigParser:
    settings = CustomConfigParser()
    settings.read(files)
    return settings


def get_section(settings : ConfigParser, name : str) -> SectionProxy:
    if name not in settings:
        raise ValueError(f"section '{name}' not found in config")
    return settings[name]
