from binderlib.config import ConfigError
from binderlib.converters.base import Converter, ConversionError
from binderlib.converters.epub import PandocEpubConverter
from binderlib.converters.mobi import CalibreConverter, KindlegenConverter

DEVICE_CONVERTERS = {
    "kindlegen": KindlegenConverter,
    "calibre": CalibreConverter,
}


def device_converter(config, verbose=False):
    """Instantiate the MOBI converter named in book.yaml."""
    name = config.device.get("converter", "kindlegen")
    try:
        converter_cls = DEVICE_CONVERTERS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown device converter '{name}' "
            f"(choose from: {', '.join(sorted(DEVICE_CONVERTERS))})"
        )
    return converter_cls(config, verbose=verbose)
