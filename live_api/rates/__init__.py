from .calculator import RateCalculator, RateSample, RateTick

__all__ = ["RateCalculator", "RateSample", "RateTick"]
