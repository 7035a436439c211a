"""Build Alpine-based rootfs images and prepare process contexts from them."""

__version__ = "0.1.0"