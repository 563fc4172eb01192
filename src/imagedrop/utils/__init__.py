from .redact import describe_src, truncate_src

__all__ = [
    "describe_src",
    "truncate_src",
]
