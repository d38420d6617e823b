"""
Book configuration: load, validate, and provide defaults for book.yaml.
"""

import os

import yaml


# Fields required in every book.yaml
REQUIRED_FIELDS = ["title", "author", "prefix"]

# Defaults applied if missing
DEFAULTS = {
    "subtitle": "",
    "publisher": "",
    "rights": "",
    "lang": "en-US",
    "toc_depth": 1,
    "articles": [],
    "allow_missing_title": False,
    "blocks": {},
    "images": {},
    "epub": {},
    "device": {},
}

# Custom HTML blocks recognized in article bodies
BLOCK_DEFAULTS = {
    "aside_tag": "aside",
    "checklist_tag": "checkbox-container",
}

# Image rewriting and the remote image cache
IMAGE_DEFAULTS = {
    "cache_dir": "image-cache",
    "extension": ".jpg",
    "absolute_prefix": "/assets/",
    "relative_prefix": "assets/",
    "aside_prefix": "../assets/",
    "workers": 8,
    "timeout": 30,
}

EPUB_DEFAULTS = {
    "css": "epub.css",
    "cover": "cover.jpg",
}

DEVICE_DEFAULTS = {
    "converter": "kindlegen",
    "flags": ["-c1", "-dont_append_source"],
    "calibre_flags": [],
}

SECTION_DEFAULTS = {
    "blocks": BLOCK_DEFAULTS,
    "images": IMAGE_DEFAULTS,
    "epub": EPUB_DEFAULTS,
    "device": DEVICE_DEFAULTS,
}


class ConfigError(Exception):
    """Raised when book.yaml is missing or invalid."""
    pass


class BookConfig:
    """
    Loaded, validated book configuration.

    Usage:
        config = BookConfig.load(book_dir)
        config.title                  # "Collected Articles"
        config.images["cache_dir"]    # "image-cache"
        config.get("subtitle")        # "" if not set
    """

    def __init__(self, data, book_dir):
        self._data = data
        self.book_dir = book_dir

    @classmethod
    def load(cls, book_dir):
        """Load and validate book.yaml from a book directory."""
        yaml_path = os.path.join(book_dir, "book.yaml")
        if not os.path.exists(yaml_path):
            raise ConfigError(f"No book.yaml found in {book_dir}")

        with open(yaml_path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"book.yaml is not valid YAML: {e}")

        return cls.from_dict(data, book_dir)

    @classmethod
    def from_dict(cls, data, book_dir):
        """Validate a raw mapping and apply defaults."""
        if not isinstance(data, dict):
            raise ConfigError(f"book.yaml must be a YAML mapping, got {type(data).__name__}")

        missing = [key for key in REQUIRED_FIELDS if not data.get(key)]
        if missing:
            raise ConfigError(
                f"book.yaml missing required fields: {', '.join(missing)}"
            )

        for key, default in DEFAULTS.items():
            data.setdefault(key, default if not isinstance(default, (list, dict)) else type(default)(default))

        for section, defaults in SECTION_DEFAULTS.items():
            if not isinstance(data[section], dict):
                raise ConfigError(f"book.yaml '{section}' must be a mapping")
            for key, default in defaults.items():
                data[section].setdefault(key, list(default) if isinstance(default, list) else default)

        if not isinstance(data["articles"], list):
            raise ConfigError("book.yaml 'articles' must be a list of paths")

        try:
            data["toc_depth"] = int(data["toc_depth"])
        except (TypeError, ValueError):
            raise ConfigError(f"toc_depth must be an integer, got {data['toc_depth']!r}")

        return cls(data, book_dir)

    # ── Attribute access ───────────────────────────────────

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"BookConfig has no field '{name}'")

    def get(self, key, default=None):
        return self._data.get(key, default)

    def __getitem__(self, key):
        return self._data[key]

    def __contains__(self, key):
        return key in self._data

    # ── Convenience ────────────────────────────────────────

    @property
    def cache_dir(self):
        """Absolute path of the remote image cache."""
        return os.path.join(self.book_dir, self.images["cache_dir"])

    def summary(self):
        """Print a short config summary."""
        print(f"\n  Book:   {self.title}")
        if self.subtitle:
            print(f"          {self.subtitle}")
        print(f"  Author: {self.author}")
        print(f"  Source: {self.book_dir}")
        print(f"  Images: {self.cache_dir}")
