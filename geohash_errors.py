class GeohashError(ValueError):
    """Base class for geohash input errors."""


class RangeError(GeohashError):
    """A latitude or longitude outside its valid range."""

    def __init__(self, axis: str, value: float, limit: float):
        self.axis = axis
        self.value = value
        self.limit = limit
        super().__init__(f"{axis} {value} must be between {-limit} and {limit}")


class InvalidSymbolError(GeohashError):
    """A character that is not part of the alphabet being decoded."""

    def __init__(self, symbol: str, alphabet: str):
        self.symbol = symbol
        self.alphabet = alphabet
        super().__init__(f"Invalid character {symbol!r} in geohash")
