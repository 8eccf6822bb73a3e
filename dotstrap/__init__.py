"""dotstrap — bootstrap a dotfiles checkout onto this machine."""

__version__ = "0.1.0"
