from dataclasses import dataclass
from typing import Optional

from geohash_errors import InvalidSymbolError, RangeError
from geohash_logger import get_logger
from geohash_settings import settings

logger = get_logger(__name__)

MIN_LAT, MAX_LAT = -90.0, 90.0
MIN_LON, MAX_LON = -180.0, 180.0
MAX_INT_BITS = 64

# Neighbor order is part of the public contract: self first, then N S W E NW SW NE SE.
NEIGHBOR_OFFSETS = {
    "self": (0, 0),
    "n": (1, 0),
    "s": (-1, 0),
    "w": (0, -1),
    "e": (0, 1),
    "nw": (1, -1),
    "sw": (-1, -1),
    "ne": (1, 1),
    "se": (-1, 1),
}


class Alphabet:
    """An ordered set of 2**bits symbols and its prefix distance table."""

    def __init__(self, symbols: str, distances: tuple[float, ...] = ()):
        size = len(symbols)
        if size < 2 or size & (size - 1):
            raise ValueError(f"Alphabet size {size} is not a power of two")
        if len(set(symbols)) != size:
            raise ValueError("Alphabet symbols must be unique")
        self.symbols = symbols
        self.bits = size.bit_length() - 1
        self.distances = tuple(float(d) for d in distances)
        # Reverse map derived from the symbol string so the two never drift apart
        self._values = {char: value for value, char in enumerate(symbols)}

    def __len__(self) -> int:
        return len(self.symbols)

    def __repr__(self) -> str:
        return f"Alphabet({self.symbols!r})"

    def symbol(self, value: int) -> str:
        return self.symbols[value]

    def value(self, symbol: str) -> int:
        try:
            return self._values[symbol]
        except KeyError:
            raise InvalidSymbolError(symbol, self.symbols) from None


# Standard geohash characters; a, i, l and o are left out.
BASE32 = Alphabet(
    "0123456789bcdefghjkmnpqrstuvwxyz",
    distances=(20000000, 2500000, 630000, 78000, 20000, 2400, 610, 76),
)

BASE4 = Alphabet(
    "0123",
    distances=(
        20000000, 10000000, 5000000, 2500000, 1250000, 630000, 315000,
        157000, 78000, 39000, 20000, 9728, 4864, 2432, 1216, 608, 304,
        152, 76, 38, 19, 9.5, 4.75, 2.37, 1.18,
    ),
)


@dataclass(frozen=True)
class Box:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @property
    def width(self) -> float:
        return self.max_lon - self.min_lon

    @property
    def height(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def center(self) -> tuple[float, float]:
        return (self.min_lat + self.max_lat) / 2, (self.min_lon + self.max_lon) / 2

    def contains(self, lat: float, lon: float) -> bool:
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lon <= lon <= self.max_lon
        )


def _check_range(lat: float, lon: float) -> None:
    # Written as "not <=" so NaN is rejected too
    if not abs(lat) <= MAX_LAT:
        raise RangeError("latitude", lat, MAX_LAT)
    if not abs(lon) <= MAX_LON:
        raise RangeError("longitude", lon, MAX_LON)


def _check_bits(bits: int) -> None:
    if not 1 <= bits <= MAX_INT_BITS:
        raise ValueError(f"Bit width must be between 1 and {MAX_INT_BITS}")


def _encode_bits(lat: float, lon: float, bit_count: int) -> tuple[int, Box]:
    """Bisect both ranges, longitude first, packing one bit per step.

    A value equal to the midpoint goes to the lower half.
    """
    _check_range(lat, lon)

    lat_lo, lat_hi = MIN_LAT, MAX_LAT
    lon_lo, lon_hi = MIN_LON, MAX_LON
    value = 0
    for i in range(bit_count):
        value <<= 1
        if i % 2 == 0:
            mid = (lon_lo + lon_hi) / 2
            if lon > mid:
                value |= 1
                lon_lo = mid
            else:
                lon_hi = mid
        else:
            mid = (lat_lo + lat_hi) / 2
            if lat > mid:
                value |= 1
                lat_lo = mid
            else:
                lat_hi = mid
    return value, Box(lat_lo, lat_hi, lon_lo, lon_hi)


def _decode_bits(value: int, bit_count: int) -> Box:
    """Replay the bisection for a packed bit stream and return the final box."""
    lat_lo, lat_hi = MIN_LAT, MAX_LAT
    lon_lo, lon_hi = MIN_LON, MAX_LON
    for i in range(bit_count):
        bit = (value >> (bit_count - 1 - i)) & 1
        if i % 2 == 0:
            mid = (lon_lo + lon_hi) / 2
            if bit:
                lon_lo = mid
            else:
                lon_hi = mid
        else:
            mid = (lat_lo + lat_hi) / 2
            if bit:
                lat_lo = mid
            else:
                lat_hi = mid
    return Box(lat_lo, lat_hi, lon_lo, lon_hi)


def encode_int(lat: float, lon: float, bits: int = MAX_INT_BITS) -> int:
    """Encode a coordinate as an unsigned integer geohash of `bits` bits."""
    _check_bits(bits)
    value, _ = _encode_bits(lat, lon, bits)
    return value


def bounding_box_int(value: int, bits: int = MAX_INT_BITS) -> Box:
    """Bounding box of an integer geohash of `bits` bits."""
    _check_bits(bits)
    if not 0 <= value < 1 << bits:
        raise ValueError(f"Value {value:#x} does not fit in {bits} bits")
    return _decode_bits(value, bits)


def decode_int(value: int, bits: int = MAX_INT_BITS) -> tuple[float, float]:
    """Decode an integer geohash to the center of its box."""
    return bounding_box_int(value, bits).center


def common_prefix_length(a: str, b: str) -> int:
    length = min(len(a), len(b))
    for i in range(length):
        if a[i] != b[i]:
            return i
    return length


class Geohash:
    def __init__(self, precision: int = None, alphabet: Alphabet = BASE32):
        """Initialize Geohash encoder/decoder with given precision and alphabet."""
        if precision is None:
            precision = settings.default_precision
        self.precision = self._check_precision(precision)
        self.alphabet = alphabet

    @staticmethod
    def _check_precision(precision: int) -> int:
        if isinstance(precision, bool) or not isinstance(precision, int):
            raise ValueError(f"Precision must be an integer, got {precision!r}")
        if precision < 1:
            raise ValueError("Precision must be at least 1")
        return precision

    def _symbols(self, value: int, length: int) -> str:
        bits = self.alphabet.bits
        mask = (1 << bits) - 1
        return "".join(
            self.alphabet.symbol((value >> ((length - 1 - i) * bits)) & mask)
            for i in range(length)
        )

    def to_int(self, geohash: str) -> int:
        """Pack the symbols of a geohash into an integer, first symbol highest."""
        value = 0
        for char in geohash:
            value = (value << self.alphabet.bits) | self.alphabet.value(char)
        return value

    def from_int(self, value: int, precision: int = None) -> str:
        """Unpack an integer produced by to_int back into `precision` symbols."""
        precision = self._check_precision(
            self.precision if precision is None else precision
        )
        if not 0 <= value < 1 << (precision * self.alphabet.bits):
            raise ValueError(
                f"Value {value:#x} does not fit in {precision} symbols"
            )
        return self._symbols(value, precision)

    def encode_with_box(
        self, lat: float, lon: float, precision: int = None
    ) -> tuple[str, Box]:
        """Encode a coordinate and return the geohash with its bounding box."""
        precision = self._check_precision(
            self.precision if precision is None else precision
        )
        value, box = _encode_bits(lat, lon, precision * self.alphabet.bits)
        return self._symbols(value, precision), box

    def encode(self, lat: float, lon: float, precision: int = None) -> str:
        """Encode a latitude and longitude into a geohash."""
        geohash, _ = self.encode_with_box(lat, lon, precision)
        return geohash

    def bounding_box(self, geohash: str) -> Box:
        """Return the region covered by a geohash of any length."""
        value = self.to_int(geohash)
        return _decode_bits(value, len(geohash) * self.alphabet.bits)

    def decode_with_box(self, geohash: str) -> tuple[tuple[float, float], Box]:
        box = self.bounding_box(geohash)
        return box.center, box

    def decode(self, geohash: str) -> tuple[float, float]:
        """Decode a geohash into the latitude and longitude at its box center."""
        return self.bounding_box(geohash).center

    def neighbors(
        self, lat: float, lon: float, precision: int = None
    ) -> list[Optional[str]]:
        """
        Compute the cell of a point plus its 8 neighbors.

        Order is [self, n, s, w, e, nw, sw, ne, se]. Neighbors are found by
        shifting the cell center one cell height or width. Nothing wraps at the
        poles or the antimeridian: a shifted point out of range gives None.
        """
        geohash, box = self.encode_with_box(lat, lon, precision)
        center_lat, center_lon = box.center

        cells = [geohash]
        for direction, (dlat, dlon) in list(NEIGHBOR_OFFSETS.items())[1:]:
            nlat = center_lat + dlat * box.height
            nlon = center_lon + dlon * box.width
            try:
                cells.append(self.encode(nlat, nlon, len(geohash)))
            except RangeError as exc:
                logger.debug(
                    "neighbor_out_of_range",
                    geohash=geohash,
                    direction=direction,
                    axis=exc.axis,
                    value=exc.value,
                )
                cells.append(None)
        return cells

    def get_neighbors(self, geohash: str) -> dict[str, Optional[str]]:
        """Neighbors of an existing geohash keyed by direction."""
        lat, lon = self.decode(geohash)
        cells = self.neighbors(lat, lon, len(geohash))
        return dict(zip(NEIGHBOR_OFFSETS, cells))

    def estimate_distance(self, a: str, b: str) -> float:
        """
        Coarse distance in meters implied by the shared prefix of two geohashes.

        This is a step function read from the alphabet's calibration table, not
        an exact distance and not a metric. A shared prefix longer than the
        table returns 0.0, or the last table entry when clamp_prefix_distance
        is set.
        """
        distances = self.alphabet.distances
        prefix = common_prefix_length(a, b)
        if prefix < len(distances):
            return distances[prefix]
        if settings.clamp_prefix_distance and distances:
            return distances[-1]
        return 0.0


if __name__ == "__main__":
    from geohash_logger import configure_logging

    configure_logging()
    geo = Geohash(precision=6)
    encoded = geo.encode(41.878738, -87.6359612)  # Willis Tower
    decoded = geo.decode(encoded)
    neighbors = geo.get_neighbors(encoded)

    print(f"Encoded: {encoded}")
    print(f"Decoded: {decoded}")
    print(f"Box: {geo.bounding_box(encoded)}")
    print(f"Neighbors: {neighbors}")
    print(f"Integer: {encode_int(41.878738, -87.6359612):016x}")
