"""splitbill: split a bill between participants by percentage share."""

__version__ = "0.1.0"
