# File: barber_finder/aggregator.py

import logging

from .models import PlaceRecord

logger = logging.getLogger(__name__)

MAX_TOTAL_RESULTS = 500


class ResultAggregator:
    """
    Deduplicated result set shared by every tile of one search.

    The first hit seen for a place id wins; later hits for the same id are
    dropped without merging. Once max_results records are held, one warning is
    recorded and every further hit is ignored for the rest of the search.
    """

    def __init__(self, max_results=MAX_TOTAL_RESULTS):
        self.max_results = max_results
        self._places = {}
        self.warnings = []
        self._full = False
        self.pages_seen = 0

    def __len__(self):
        return len(self._places)

    def __contains__(self, place_id):
        return place_id in self._places

    @property
    def is_full(self):
        return self._full

    @property
    def results(self):
        return list(self._places.values())

    def add_hits(self, hits):
        """
        Folds one page of raw text search hits into the set.

        Returns:
            int: Number of new records inserted.
        """
        self.pages_seen += 1
        added = 0
        for place in hits:
            if self._full:
                break
            place_id = place.get("id")
            if not place_id:
                logger.warning(f"Found a place result without id: {(place.get('displayName') or {}).get('text', 'N/A')}")
                continue
            if place_id in self._places:
                continue

            self._places[place_id] = PlaceRecord.from_api_place(place)
            added += 1

            if len(self._places) >= self.max_results:
                self._full = True
                message = f"Result limit of {self.max_results} places reached; remaining results were skipped."
                self.warnings.append(message)
                logger.warning(message)
        return added
