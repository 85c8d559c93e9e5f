from ._fs import safe_rmpath
from ._generic import not_none
from ._option_sets import LoggingOptions
from ._text import pluralize
from ._tomlconfig import TomlConfigFile

__all__ = [
    # _fs
    "safe_rmpath",
    # _generic
    "not_none",
    # _option_sets
    "LoggingOptions",
    # _text
    "pluralize",
    # _tomlconfig
    "TomlConfigFile",
]
