from ptacore.pricing.pricer import NoPriceError, Pricer

__all__ = ["NoPriceError", "Pricer"]
