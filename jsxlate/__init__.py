"""jsxlate: keep a JSX translations registry in sync with ``<T>`` tags in source."""

__version__ = "0.1.0"
