"""Track local dotfiles as tagged notes in a remote note store."""

__version__ = "0.4.0"
