# mediarelay - membership-gated media relay bot
__version__ = "0.1.0"
