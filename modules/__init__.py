"""Helper modules for the booth print relay."""

__all__ = [
    "image_prep",
    "printer_registry",
]
