from typing import Optional

import redis

from geo_distance import haversine
from geohash import Geohash, bounding_box_int, encode_int
from geohash_logger import get_logger
from geohash_settings import settings

logger = get_logger(__name__)

# Sorted-set scores are doubles, so positions are packed into 52 bits like Redis GEOADD
SCORE_BITS = 52


def get_redis_client(url: str = None) -> redis.Redis:
    """Create a Redis client from a URL, defaulting to the configured one."""
    return redis.Redis.from_url(url or settings.redis_url, decode_responses=True)


class GeoCellCache:
    """
    Cache of members partitioned by the geohash cell of their position.

    Each cell is a sorted set of members scored by their integer geohash, so a
    nearby lookup reads the nine cells around a point and nothing else.
    """

    def __init__(
        self,
        client: redis.Redis = None,
        geohash: Geohash = None,
        key_prefix: str = None,
        ttl: int = None,
    ):
        self.client = client if client is not None else get_redis_client()
        self.geohash = geohash or Geohash(precision=settings.cell_cache_precision)
        self.key_prefix = key_prefix or settings.cell_cache_prefix
        self.ttl = settings.cell_cache_ttl if ttl is None else ttl

    def cell_key(self, cell: str) -> str:
        return f"{self.key_prefix}:cell:{cell}"

    def meta_key(self, member: str) -> str:
        return f"{self.key_prefix}:meta:{member}"

    def loc_key(self, member: str) -> str:
        return f"{self.key_prefix}:loc:{member}"

    def cell_of(self, member: str) -> Optional[str]:
        """The cell a member was last stored in, or None."""
        return self.client.get(self.loc_key(member))

    def add(self, member: str, lat: float, lon: float, metadata: dict = None) -> str:
        """
        Store a member in the cell containing (lat, lon). Returns the cell.

        A member already stored elsewhere is moved: it leaves its previous cell
        in the same pipeline that writes the new one.
        """
        cell = self.geohash.encode(lat, lon)
        score = encode_int(lat, lon, SCORE_BITS)
        previous = self.cell_of(member)

        pipe = self.client.pipeline()
        if previous and previous != cell:
            pipe.zrem(self.cell_key(previous), member)
        pipe.zadd(self.cell_key(cell), {member: score})
        pipe.set(self.loc_key(member), cell, ex=self.ttl)
        if metadata:
            pipe.hset(self.meta_key(member), mapping=metadata)
            pipe.expire(self.meta_key(member), self.ttl)
        pipe.expire(self.cell_key(cell), self.ttl)
        pipe.execute()

        logger.debug("cell_member_added", member=member, cell=cell, previous=previous)
        return cell

    def remove(self, member: str) -> bool:
        """Drop a member from its cell along with its metadata."""
        cell = self.cell_of(member)
        pipe = self.client.pipeline()
        if cell:
            pipe.zrem(self.cell_key(cell), member)
        pipe.delete(self.meta_key(member), self.loc_key(member))
        results = pipe.execute()
        return bool(cell) and bool(results[0])

    def metadata(self, member: str) -> dict:
        return self.client.hgetall(self.meta_key(member))

    def nearby(
        self, lat: float, lon: float, radius: float = None
    ) -> list[tuple[str, float]]:
        """
        Members stored in the cell of (lat, lon) and its 8 neighbors.

        Returns (member, meters) pairs sorted by haversine distance, keeping only
        those within `radius` meters when given. Cells past the poles or the
        antimeridian are not searched.
        """
        cells = [c for c in dict.fromkeys(self.geohash.neighbors(lat, lon)) if c]

        pipe = self.client.pipeline()
        for cell in cells:
            pipe.zrange(self.cell_key(cell), 0, -1, withscores=True)
        responses = pipe.execute()

        results = []
        for members in responses:
            for member, score in members:
                member_lat, member_lon = bounding_box_int(int(score), SCORE_BITS).center
                meters = haversine(lat, lon, member_lat, member_lon)
                if radius is None or meters <= radius:
                    results.append((member, meters))

        results.sort(key=lambda item: item[1])
        logger.debug(
            "nearby_lookup", cells=len(cells), found=len(results), radius=radius
        )
        return results

    def clear(self) -> int:
        """Delete every key under this cache's prefix."""
        keys = list(self.client.scan_iter(match=f"{self.key_prefix}:*"))
        if not keys:
            return 0
        return self.client.delete(*keys)


if __name__ == "__main__":
    import random

    from geohash_logger import configure_logging

    configure_logging()
    cache = GeoCellCache()
    cache.clear()

    nyc_lat, nyc_lon = 40.7128, -74.0060
    for i in range(40):
        # Roughly 1 degree ~= 111km; sample data only
        lat = nyc_lat + (random.random() - 0.5) * 2 * 2 / 111
        lon = nyc_lon + (random.random() - 0.5) * 2 * 2 / 111
        cuisine = random.choice(["Italian", "Mexican", "Chinese", "Indian", "American"])
        cache.add(
            f"restaurant:{1001 + i}",
            lat,
            lon,
            {"name": f"Restaurant {i + 1}", "cuisine": cuisine},
        )

    res = cache.nearby(nyc_lat, nyc_lon, radius=1500)
    print(f"Found {len(res)} restaurants within 1.5 km of NYC")
    for rid, dist in res:
        metadata = cache.metadata(rid)
        print(f" - {metadata['name']} ({metadata['cuisine']}) - {dist:.0f} m away")

    cache.clear()
